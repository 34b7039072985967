"""Leitner-box scheduling and review queue construction.

Boxes run 1..5; a higher box means a longer interval:

    box:       1   2   3   4   5
    interval:  1d  1d  3d  7d  21d

Ratings: again -> box 1, due now; good -> box + 1; easy -> box + 2 (clamped).

Everything here is a pure function of its arguments; there is no session
state, so queues are deterministic for a given ``now``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional

from .models import MAX_BOX, MIN_BOX, Card
from .tags import filter_cards_by_tags

DAY_MS = 24 * 60 * 60 * 1000

INTERVAL_DAYS: Dict[int, int] = {1: 1, 2: 1, 3: 3, 4: 7, 5: 21}


class Rating(str, Enum):
    AGAIN = "again"
    GOOD = "good"
    EASY = "easy"

    def __str__(self) -> str:
        return self.value


_BOX_STEP = {Rating.GOOD: 1, Rating.EASY: 2}


class BoxAndDue(NamedTuple):
    box: int
    due: int


@dataclass(frozen=True)
class QueueStats:
    due: int
    new: int


def clamp_box(box: Optional[int]) -> int:
    if box is None:
        return MIN_BOX
    return max(MIN_BOX, min(MAX_BOX, int(box)))


def next_box_and_due(prev_box: Optional[int], rating: Rating | str, now: int) -> BoxAndDue:
    """Compute the box and due time after rating a card.

    Args:
        prev_box: Current box (None for a new card; out-of-range values are clamped)
        rating: "again", "good" or "easy"
        now: Review time in epoch ms

    Returns:
        BoxAndDue with the new box and due time

    Raises:
        ValueError: If ``rating`` is not a known rating
    """
    rating = Rating(rating)
    prev = clamp_box(prev_box)
    if rating is Rating.AGAIN:
        return BoxAndDue(box=MIN_BOX, due=now)
    box = clamp_box(prev + _BOX_STEP[rating])
    return BoxAndDue(box=box, due=now + INTERVAL_DAYS[box] * DAY_MS)


def apply_rating(card: Card, rating: Rating | str, now: int) -> Card:
    """Return ``card`` with box, due and updated_at advanced by ``rating``."""
    box, due = next_box_and_due(card.box, rating, now)
    return replace(card, box=box, due=due, updated_at=now)


def is_due(card: Card, now: int) -> bool:
    return card.box is not None and card.due is not None and card.due <= now


def build_review_queue(
    cards: Iterable[Card],
    tag_filter: Optional[Iterable[str]],
    include_new: bool,
    new_budget: int,
    now: int,
) -> List[str]:
    """Build the ordered list of card ids to review.

    Due cards come first, sorted by box ascending, then due ascending, then
    most recently updated. New cards (never reviewed) follow in pool order,
    capped at ``new_budget``.
    """
    pool = filter_cards_by_tags(cards, tag_filter)
    due_cards = sorted(
        (c for c in pool if is_due(c, now)),
        key=lambda c: (c.box, c.due, -c.updated_at),
    )
    queue = [c.id for c in due_cards]
    if include_new:
        budget = max(0, new_budget)
        queue.extend([c.id for c in pool if c.is_new][:budget])
    return queue


def queue_stats(cards: Iterable[Card], tag_filter: Optional[Iterable[str]], now: int) -> QueueStats:
    """Count due and never-reviewed cards in the filtered pool."""
    pool = filter_cards_by_tags(cards, tag_filter)
    return QueueStats(
        due=sum(1 for c in pool if is_due(c, now)),
        new=sum(1 for c in pool if c.is_new),
    )
