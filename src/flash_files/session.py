"""Review session state machine.

    idle --start--> active --rate (last card)--> complete
                      ^  |                          |
                      +--+ rate (more cards)        +--end--> idle

Showing/hiding the answer is independent of the state, but a rating is only
accepted while the answer is shown. The session holds no locks; callers
serialize rating actions against one session.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .models import Card, now_ms
from .scheduler import Rating, apply_rating, build_review_queue
from .store import Store

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"
COMPLETE = "complete"


class SessionError(RuntimeError):
    """Raised for actions not allowed in the current session state."""


class ReviewSession:
    def __init__(self, store: Store) -> None:
        self._store = store
        self.state = IDLE
        self.queue: List[str] = []
        self.show_answer = False
        self.reviewed = 0

    def start(
        self,
        tag_filter: Optional[Iterable[str]] = None,
        include_new: bool = True,
        new_budget: int = 20,
        now: Optional[int] = None,
    ) -> List[str]:
        if self.state == ACTIVE:
            raise SessionError("A session is already active; end it first")
        ts = now_ms() if now is None else now
        self.queue = build_review_queue(self._store.list_cards(), tag_filter, include_new, new_budget, ts)
        self.show_answer = False
        self.reviewed = 0
        self.state = ACTIVE if self.queue else COMPLETE
        logger.info("Review session started with %d cards", len(self.queue))
        return list(self.queue)

    @property
    def current(self) -> Optional[Card]:
        if self.state != ACTIVE or not self.queue:
            return None
        return self._store.get_card(self.queue[0])

    @property
    def remaining(self) -> int:
        return len(self.queue)

    def toggle_answer(self) -> bool:
        self.show_answer = not self.show_answer
        return self.show_answer

    def rate(self, rating: Rating | str, now: Optional[int] = None) -> Card:
        """Rate the current card, persist the transition and advance the queue."""
        if self.state != ACTIVE:
            raise SessionError(f"Cannot rate in state {self.state!r}")
        if not self.show_answer:
            raise SessionError("Show the answer before rating")
        card_id = self.queue[0]
        card = self._store.get_card(card_id)
        if card is None:
            # Deleted mid-session: drop it without counting a review.
            self._advance()
            raise SessionError(f"Card {card_id} no longer exists")
        updated = apply_rating(card, rating, now_ms() if now is None else now)
        self._store.put_card(updated)
        self.reviewed += 1
        self._advance()
        return updated

    def _advance(self) -> None:
        self.queue.pop(0)
        self.show_answer = False
        if not self.queue:
            self.state = COMPLETE
            logger.info("Review session complete: %d reviewed", self.reviewed)

    def end(self) -> None:
        """Return to idle, discarding the in-memory queue."""
        self.state = IDLE
        self.queue = []
        self.show_answer = False
