"""Wiki-link extraction and resolution against the card collection.

Resolution tiers, first hit wins:

1. case-insensitive exact match on the raw question
2. exact match on normalized forms (see ``normalize_for_match``)
3. substring containment in either direction on normalized forms

Tier 3 is unscored: when several cards qualify, the first one in collection
order wins, so callers control the outcome through the order they pass in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .models import Card
from .normalize import normalize_for_match

_WIKI_LINK_RE = re.compile(r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]")


@dataclass(frozen=True)
class WikiLink:
    match: str
    target: str
    alias: Optional[str]


@dataclass(frozen=True)
class Found:
    id: str
    question: str
    tags: Tuple[str, ...]
    found: bool = True


@dataclass(frozen=True)
class NotFound:
    found: bool = False


WikiLinkResolution = Union[Found, NotFound]
MatchTier = Callable[[str, Sequence[Card]], Optional[Card]]


def extract_wiki_links(markdown: str) -> List[WikiLink]:
    """Extract ``[[Target]]`` and ``[[Target|Alias]]`` links in document order."""
    links: List[WikiLink] = []
    for m in _WIKI_LINK_RE.finditer(markdown or ""):
        alias = (m.group(2) or "").strip() or None
        links.append(WikiLink(match=m.group(0), target=m.group(1).strip(), alias=alias))
    return links


def match_exact(target: str, cards: Sequence[Card]) -> Optional[Card]:
    wanted = target.lower()
    return next((c for c in cards if c.question.lower() == wanted), None)


def match_normalized(target: str, cards: Sequence[Card]) -> Optional[Card]:
    wanted = normalize_for_match(target)
    return next((c for c in cards if normalize_for_match(c.question) == wanted), None)


def match_contains(target: str, cards: Sequence[Card]) -> Optional[Card]:
    wanted = normalize_for_match(target)
    if not wanted:
        return None
    for c in cards:
        q = normalize_for_match(c.question)
        if q and (wanted in q or q in wanted):
            return c
    return None


MATCH_TIERS: List[MatchTier] = [match_exact, match_normalized, match_contains]


def resolve_wiki_link(target: str, cards: Sequence[Card]) -> WikiLinkResolution:
    """Resolve a link target to a card. Read-only; safe to call on every render."""
    cards = list(cards)
    for tier in MATCH_TIERS:
        card = tier(target, cards)
        if card is not None:
            return Found(id=card.id, question=card.question, tags=card.tags)
    return NotFound()


def resolve_all(markdown: str, cards: Sequence[Card]) -> List[Tuple[WikiLink, WikiLinkResolution]]:
    cards = list(cards)
    return [(link, resolve_wiki_link(link.target, cards)) for link in extract_wiki_links(markdown)]
