"""Tests for tag extraction, normalization and bulk operations."""

import pytest
from flash_files.models import Card
from flash_files.tags import (
    add_tag_to_cards,
    coerce_frontmatter_tags,
    extract_inline_tags,
    filter_cards_by_tags,
    format_tags,
    merge_and_normalize_tags,
    normalize_tag,
    normalize_tags,
    remove_tag_from_cards,
    rename_tag,
    strip_code_fences,
    tag_counts,
)


def make_card(card_id, tags, updated_at=100):
    return Card(id=card_id, question=f"Q {card_id}", answer_body="A", tags=tuple(tags),
                created_at=100, updated_at=updated_at)


class TestFormatTags:
    def test_format_empty_list(self):
        assert format_tags([]) == ""

    def test_format_multiple_tags(self):
        assert format_tags(["gita", "chapter/2"]) == "gita chapter/2"


class TestNormalizeTags:
    """Test tag normalization functionality."""

    def test_normalize_tag(self):
        assert normalize_tag("  GITA ") == "gita"

    def test_dedupe_keeps_first_order(self):
        assert normalize_tags(["Gita", "karma", "gita", " KARMA "]) == ["gita", "karma"]

    def test_empties_dropped(self):
        assert normalize_tags(["", "  ", "x"]) == ["x"]


class TestStripCodeFences:
    def test_backtick_and_tilde(self):
        md = "a\n```\n#x\n```\nb\n~~~\n#y\n~~~\nc"
        assert strip_code_fences(md) == "a\n\nb\n\nc"

    def test_lazy_non_overlapping(self):
        md = "```one``` keep ```two```"
        assert strip_code_fences(md) == " keep "

    def test_unclosed_fence_kept(self):
        assert strip_code_fences("```\n#x") == "```\n#x"


class TestExtractInlineTags:
    """Test hashtag scanning."""

    def test_basic(self):
        assert extract_inline_tags("Study #gita and #Karma-Yoga daily") == ["gita", "karma-yoga"]

    def test_start_of_string(self):
        assert extract_inline_tags("#first word") == ["first"]

    def test_hierarchical(self):
        assert extract_inline_tags("See #gita/chapter/2 and #under_score") == ["gita/chapter/2", "under_score"]

    def test_not_after_word_characters(self):
        """Test that anchors, URLs and path fragments are not tags."""
        md = "page#anchor http://x.org/#frag a_#b c-#d"
        assert extract_inline_tags(md) == []

    def test_heading_marker_is_not_tag(self):
        assert extract_inline_tags("# Heading\n## Sub") == []

    def test_after_punctuation(self):
        assert extract_inline_tags("(#paren) ,#comma") == ["paren", "comma"]

    def test_tags_in_code_fences_ignored(self):
        """Test that a tag inside a fence is absent even if it also appears outside."""
        md = "```python\n#fenced\n```\n~~~\n#tilde\n~~~\n#python and #programming"
        assert extract_inline_tags(md) == ["python", "programming"]

    def test_same_tag_inside_and_outside(self):
        md = "```\n#gita\n```\n#gita"
        assert extract_inline_tags(md) == ["gita"]


class TestMerge:
    def test_coerce_scalar(self):
        assert coerce_frontmatter_tags("gita") == ["gita"]

    def test_coerce_list(self):
        assert coerce_frontmatter_tags(["a", "b"]) == ["a", "b"]

    @pytest.mark.parametrize("value", [None, "", []])
    def test_coerce_empty(self, value):
        assert coerce_frontmatter_tags(value) == []

    def test_merge(self):
        result = merge_and_normalize_tags(["Gita", "chapter/2"], ["gita", "bhakti"])
        assert set(result) == {"gita", "chapter/2", "bhakti"}
        assert len(result) == 3


class TestBulkOperations:
    """Test bulk tag operations over card snapshots."""

    def test_add_tag_to_all(self):
        cards = [make_card("a", ["x"]), make_card("b", [])]
        result = add_tag_to_cards(cards, " NEW ", now=500)
        assert [c.tags for c in result] == [("x", "new"), ("new",)]
        assert all(c.updated_at == 500 for c in result)

    def test_add_tag_to_selected_only(self):
        cards = [make_card("a", []), make_card("b", [])]
        result = add_tag_to_cards(cards, "x", card_ids=["b"], now=500)
        assert result[0] is cards[0]
        assert result[1].tags == ("x",)

    def test_add_existing_tag_is_noop(self):
        cards = [make_card("a", ["x"])]
        result = add_tag_to_cards(cards, "X", now=500)
        assert result[0] is cards[0]
        assert result[0].updated_at == 100

    def test_remove_tag(self):
        cards = [make_card("a", ["x", "y"]), make_card("b", ["y"])]
        result = remove_tag_from_cards(cards, "X", now=500)
        assert result[0].tags == ("y",)
        assert result[0].updated_at == 500
        assert result[1] is cards[1]

    def test_rename_tag_merges(self):
        cards = [make_card("a", ["old", "new"]), make_card("b", ["other"])]
        result = rename_tag(cards, "OLD", "New", now=500)
        assert result[0].tags == ("new",)
        assert result[1] is cards[1]

    def test_rename_to_empty_rejected(self):
        with pytest.raises(ValueError):
            rename_tag([], "a", "  ")

    def test_input_not_mutated(self):
        cards = [make_card("a", ["x"])]
        remove_tag_from_cards(cards, "x", now=500)
        assert cards[0].tags == ("x",)


class TestFilterAndCounts:
    def test_filter_and_semantics(self):
        cards = [make_card("a", ["gita", "karma"]), make_card("b", ["gita"]), make_card("c", [])]
        assert [c.id for c in filter_cards_by_tags(cards, ["GITA", "karma"])] == ["a"]
        assert [c.id for c in filter_cards_by_tags(cards, ["gita"])] == ["a", "b"]

    def test_empty_filter_keeps_all(self):
        cards = [make_card("a", []), make_card("b", ["x"])]
        assert len(filter_cards_by_tags(cards, None)) == 2
        assert len(filter_cards_by_tags(cards, [])) == 2

    def test_tag_counts(self):
        cards = [make_card("a", ["gita", "karma"]), make_card("b", ["gita"])]
        assert tag_counts(cards) == {"gita": 2, "karma": 1}
