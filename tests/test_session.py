"""Tests for the review session state machine."""

import pytest
from flash_files.models import Card
from flash_files.scheduler import DAY_MS, Rating
from flash_files.session import ACTIVE, COMPLETE, IDLE, ReviewSession, SessionError
from flash_files.store import InMemoryStore

NOW = 1_700_000_000_000


@pytest.fixture
def store():
    s = InMemoryStore()
    s.put_card(Card(id="due", question="Due card", answer_body="A", tags=("gita",),
                    created_at=1, updated_at=1, box=2, due=NOW - 1))
    s.put_card(Card(id="new", question="New card", answer_body="B", tags=("gita",),
                    created_at=1, updated_at=1))
    return s


class TestReviewSession:
    def test_starts_idle(self, store):
        session = ReviewSession(store)
        assert session.state == IDLE
        assert session.current is None

    def test_start_builds_queue(self, store):
        session = ReviewSession(store)
        assert session.start(["gita"], True, 5, now=NOW) == ["due", "new"]
        assert session.state == ACTIVE
        assert session.current.id == "due"
        assert not session.show_answer

    def test_empty_queue_completes_immediately(self, store):
        session = ReviewSession(store)
        session.start(["missing"], True, 5, now=NOW)
        assert session.state == COMPLETE
        assert session.current is None

    def test_rating_requires_shown_answer(self, store):
        session = ReviewSession(store)
        session.start(None, True, 5, now=NOW)
        with pytest.raises(SessionError, match="Show the answer"):
            session.rate("good", now=NOW)
        assert session.current.id == "due"

    def test_toggle_is_independent(self, store):
        session = ReviewSession(store)
        assert session.toggle_answer() is True
        assert session.toggle_answer() is False
        assert session.state == IDLE

    def test_rate_persists_and_advances(self, store):
        session = ReviewSession(store)
        session.start(None, True, 5, now=NOW)
        session.toggle_answer()
        updated = session.rate(Rating.GOOD, now=NOW)
        assert (updated.box, updated.due) == (3, NOW + 3 * DAY_MS)
        assert store.get_card("due") == updated
        assert session.current.id == "new"
        assert not session.show_answer
        assert session.reviewed == 1

    def test_completes_after_last_card(self, store):
        session = ReviewSession(store)
        session.start(None, True, 5, now=NOW)
        for _ in range(2):
            session.toggle_answer()
            session.rate("again", now=NOW)
        assert session.state == COMPLETE
        assert session.remaining == 0
        assert store.get_card("new").box == 1
        with pytest.raises(SessionError):
            session.rate("good", now=NOW)
        session.end()
        assert session.state == IDLE

    def test_end_early_discards_queue(self, store):
        session = ReviewSession(store)
        session.start(None, True, 5, now=NOW)
        session.end()
        assert session.state == IDLE
        assert session.queue == []
        assert store.get_card("due").box == 2

    def test_cannot_start_twice(self, store):
        session = ReviewSession(store)
        session.start(None, True, 5, now=NOW)
        with pytest.raises(SessionError):
            session.start(None, True, 5, now=NOW)

    def test_card_deleted_mid_session(self, store):
        session = ReviewSession(store)
        session.start(None, True, 5, now=NOW)
        store.delete_card("due")
        session.toggle_answer()
        with pytest.raises(SessionError, match="no longer exists"):
            session.rate("good", now=NOW)
        assert session.current.id == "new"
        assert session.reviewed == 0
