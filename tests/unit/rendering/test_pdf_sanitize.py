"""Unit tests for PDF text sanitation."""

import pytest

from visa_assistant.services.rendering.sanitize import remove_problematic_symbols, sanitize_for_pdf


class TestRemoveProblematicSymbols:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Important** note", "Important note"),
            ("Really!!", "Really"),
            ("Section -- two", "Section  two"),
            ("a=== b", "a b"),
            ("Hello!", "Hello!"),
        ],
    )
    def test_repeated_runs_are_removed(self, text, expected):
        assert remove_problematic_symbols(text) == expected

    def test_empty_input(self):
        assert remove_problematic_symbols(None) == ""


class TestSanitizeForPdf:

    def test_typographic_symbols_are_transliterated(self):
        assert sanitize_for_pdf("“Quoted” – 10€ …") == '"Quoted" - 10EUR ...'

    def test_greek_letters_are_romanized(self):
        assert sanitize_for_pdf("Δελτα") == "Delta"

    def test_accents_are_stripped(self):
        assert sanitize_for_pdf("São Paulo, Conceição") == "Sao Paulo, Conceicao"

    def test_soft_hyphen_dropped_and_other_latin1_kept(self):
        assert sanitize_for_pdf("co\u00adoperate ½") == "cooperate ½"

    def test_unsupported_characters_are_dropped(self):
        assert sanitize_for_pdf("Hi 你好 there") == "Hi there"

    def test_spaces_collapse_but_newlines_survive(self):
        assert sanitize_for_pdf("  one\t\t two \nthree  ") == "one two \nthree"
