"""Unit tests for the short-paragraph merge pass."""

from visa_assistant.services.layout.paragraphs import merge_short_paragraphs, word_count

LONG = " ".join(["word"] * 40)


class TestMergeShortParagraphs:

    def test_short_paragraph_joins_the_next_one(self):
        result = merge_short_paragraphs(["Short intro.", LONG, LONG], min_words=35)

        assert result.merged_paragraphs == [f"Short intro. {LONG}", LONG]
        assert [a.index for a in result.actions] == [0]
        assert result.actions[0].type == "MERGED_SHORT_PARAGRAPH"

    def test_last_paragraph_is_never_merged(self):
        result = merge_short_paragraphs([LONG, "Tail."], min_words=35)

        assert result.merged_paragraphs == [LONG, "Tail."]
        assert result.actions == []

    def test_merged_pair_is_not_reexamined(self):
        result = merge_short_paragraphs(["a", "b", "c", "d"], min_words=35)

        assert result.merged_paragraphs == ["a b", "c d"]
        assert [a.index for a in result.actions] == [0, 2]

    def test_empty_input(self):
        assert merge_short_paragraphs([]).merged_paragraphs == []

    def test_word_count(self):
        assert word_count("  one two\nthree ") == 3
