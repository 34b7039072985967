"""Tag extraction, normalization, and bulk tag operations.

Sources of tags on a note:
- Front matter ``tags`` (array or scalar)
- Inline hashtags in the body, including hierarchies like ``#chapter/2``

Hashtags inside fenced code blocks (``` or ~~~) are ignored.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

from .models import Card, now_ms

_BACKTICK_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)
_TILDE_FENCE_RE = re.compile(r"~~~.*?~~~", re.DOTALL)
_HASHTAG_RE = re.compile(r"(?:^|(?<=[^A-Za-z0-9/_-]))#([A-Za-z0-9/_-]+)")


def normalize_tag(tag: str) -> str:
    """Lowercase and trim a single tag."""
    return str(tag).strip().lower()


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Lowercase, trim, drop empties and de-duplicate (first occurrence wins)."""
    normalized = (normalize_tag(t) for t in tags if t is not None)
    return list(dict.fromkeys(t for t in normalized if t))


def format_tags(tags_list: Sequence[str]) -> str:
    """Format a tag list as a space-separated string."""
    if not tags_list:
        return ""
    return " ".join(tags_list)


def strip_code_fences(markdown: str) -> str:
    """Remove ``` and ~~~ fenced regions (lazy, non-overlapping)."""
    without_backticks = _BACKTICK_FENCE_RE.sub("", markdown or "")
    return _TILDE_FENCE_RE.sub("", without_backticks)


def extract_inline_tags(markdown: str) -> List[str]:
    """Find ``#tags`` outside fenced code blocks."""
    text = strip_code_fences(markdown)
    return normalize_tags(m.group(1) for m in _HASHTAG_RE.finditer(text))


def coerce_frontmatter_tags(value: object) -> List[str]:
    """Front matter tags may be a list or a scalar; scalars become one-element lists."""
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    if value:
        return [str(value)]
    return []


def merge_and_normalize_tags(frontmatter: object, inline: Iterable[str]) -> List[str]:
    return normalize_tags([*coerce_frontmatter_tags(frontmatter), *inline])


# Bulk operations over card snapshots. Each returns a new list; cards that do
# not change keep their identity and updated_at.


def _retag(card: Card, tags: List[str], now: int) -> Card:
    new_tags = tuple(normalize_tags(tags))
    if new_tags == card.tags:
        return card
    return replace(card, tags=new_tags, updated_at=now)


def add_tag_to_cards(
    cards: Iterable[Card], tag: str, card_ids: Optional[Iterable[str]] = None, now: Optional[int] = None
) -> List[Card]:
    """Add ``tag`` to the selected cards (all cards when ``card_ids`` is None)."""
    ts = now_ms() if now is None else now
    selected = set(card_ids) if card_ids is not None else None
    return [
        _retag(c, [*c.tags, tag], ts) if selected is None or c.id in selected else c
        for c in cards
    ]


def remove_tag_from_cards(
    cards: Iterable[Card], tag: str, card_ids: Optional[Iterable[str]] = None, now: Optional[int] = None
) -> List[Card]:
    ts = now_ms() if now is None else now
    target = normalize_tag(tag)
    selected = set(card_ids) if card_ids is not None else None
    return [
        _retag(c, [t for t in c.tags if t != target], ts) if selected is None or c.id in selected else c
        for c in cards
    ]


def rename_tag(cards: Iterable[Card], old: str, new: str, now: Optional[int] = None) -> List[Card]:
    """Rename a tag on every card carrying it; merging into an existing tag is fine."""
    ts = now_ms() if now is None else now
    old_n, new_n = normalize_tag(old), normalize_tag(new)
    if not new_n:
        raise ValueError("new tag name must not be empty")
    return [
        _retag(c, [new_n if t == old_n else t for t in c.tags], ts) if old_n in c.tags else c
        for c in cards
    ]


def filter_cards_by_tags(cards: Iterable[Card], tags: Optional[Iterable[str]]) -> List[Card]:
    """Keep cards holding every tag in ``tags`` (case-insensitive AND)."""
    wanted = normalize_tags(tags or [])
    return [c for c in cards if all(t in c.tags for t in wanted)]


def tag_counts(cards: Iterable[Card]) -> Dict[str, int]:
    counts: Counter = Counter()
    for c in cards:
        counts.update(c.tags)
    return dict(sorted(counts.items()))
