"""Tests for card and import record types."""

import pytest
from flash_files.models import Card, ImportRecord


class TestCard:
    """Test Card invariants and serialization."""

    def test_new_normalizes_tags(self):
        card = Card.new("Q", "A", ["Gita", "gita", " Karma "], now=1000, card_id="c1")
        assert card.tags == ("gita", "karma")
        assert card.created_at == card.updated_at == 1000
        assert card.box is None and card.due is None
        assert card.is_new

    def test_new_mints_unique_ids(self):
        assert Card.new("Q", "A").id != Card.new("Q", "A").id

    @pytest.mark.parametrize("box", [0, 6, -1])
    def test_box_out_of_range_rejected(self, box):
        with pytest.raises(ValueError):
            Card(id="c", question="Q", answer_body="A", box=box, due=1)

    def test_box_without_due_rejected(self):
        with pytest.raises(ValueError, match="together"):
            Card(id="c", question="Q", answer_body="A", box=2)

    def test_edit(self):
        card = Card.new("Q", "A", ["x"], now=1000, card_id="c1")
        edited = card.edit(question="  New   question ", tags=["Y"], now=2000)
        assert edited.question == "New question"
        assert edited.tags == ("y",)
        assert edited.updated_at == 2000
        assert edited.id == "c1" and edited.created_at == 1000
        assert card.question == "Q"

    def test_edit_empty_question_rejected(self):
        card = Card.new("Q", "A", now=1000)
        with pytest.raises(ValueError):
            card.edit(question="   ")

    def test_to_dict_omits_box_for_new_cards(self):
        d = Card.new("Q", "A", ["t"], now=5, card_id="c1").to_dict()
        assert d == {
            "id": "c1", "question": "Q", "answerBody": "A", "tags": ["t"],
            "createdAt": 5, "updatedAt": 5,
        }

    def test_dict_round_trip_with_box(self):
        card = Card(id="c1", question="Q", answer_body="A", tags=("t",),
                    created_at=1, updated_at=2, box=3, due=99)
        assert Card.from_dict(card.to_dict()) == card


class TestImportRecord:
    def test_dict_round_trip(self):
        rec = ImportRecord(file_name="a.md", content_hash="h", card_id="c", created_at=7)
        assert ImportRecord.from_dict(rec.to_dict()) == rec
