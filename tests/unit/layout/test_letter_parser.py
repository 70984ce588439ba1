"""Unit tests for splitting an assembled letter into layout sections."""

from visa_assistant.services.layout.letter_parser import (
    is_header_paragraph,
    parse_letter_for_layout,
    split_paragraphs,
)
from visa_assistant.services.letters.assembler import CoverLetterAssembler
from visa_assistant.services.letters.mapper import map_to_i539_context

LONG = " ".join(["evidence"] * 40)

LETTER = f"""Maria Silva
100 Main St
Boston, MA, 02110

March 1, 2025

Re: Form I-539, Application to Extend/Change Nonimmigrant Status

Dear Sir or Madam:

{LONG}

Financial Requirements:
Tuition: USD $18,000
Available Financial Resources:
Personal Funds: USD $12,346
Total Available: USD $12,346

{LONG}

Respectfully submitted,

Maria Silva"""


class TestParseLetter:

    def test_header_body_financial_and_signature(self):
        parsed = parse_letter_for_layout(LETTER)

        assert parsed.cover_header.startswith("Maria Silva")
        assert "Dear Sir or Madam:" in parsed.cover_header
        assert parsed.cover_body_paragraphs == [LONG, LONG]
        assert parsed.financial.available_resources.personal_funds == "12,346"
        assert parsed.applicant_name == "Maria Silva"

    def test_explicit_name_and_appendices_win(self):
        parsed = parse_letter_for_layout(
            LETTER + "\n\nPERSONAL STATEMENT\nIgnored paragraph.",
            personal_statement=f"{LONG}\n\n{LONG}",
            exhibit_items=["Exhibit A: Passport"],
            applicant_name="Maria Fernanda Silva",
        )

        assert parsed.applicant_name == "Maria Fernanda Silva"
        assert parsed.personal_paragraphs == [LONG, LONG]
        assert parsed.exhibit_items == ["Exhibit A: Passport"]

    def test_embedded_exhibit_list_section(self):
        letter = "Dear Sir or Madam:\n\nEXHIBIT LIST\nExhibit A: Passport\nExhibit B: I-94\nnot an item"

        parsed = parse_letter_for_layout(letter)

        assert parsed.exhibit_items == ["Exhibit A: Passport", "Exhibit B: I-94"]

    def test_assembled_letter_round_trips_into_sections(self, aggregated_data, today):
        letter = CoverLetterAssembler().assemble(map_to_i539_context(aggregated_data, today=today))

        parsed = parse_letter_for_layout(letter, applicant_name="Maria Fernanda Silva")

        assert "Re: Form I-539" in parsed.cover_header
        assert parsed.financial is not None
        assert parsed.financial.available_resources.personal_funds == "12,346"
        assert parsed.cover_body_paragraphs
        assert not any(p.startswith("Respectfully") for p in parsed.cover_body_paragraphs)


class TestHelpers:

    def test_split_paragraphs_drops_blank_runs(self):
        assert split_paragraphs("a\n\n\n\nb\n\n") == ["a", "b"]

    def test_header_detection_is_limited_to_opening_paragraphs(self):
        assert is_header_paragraph("Dear Sir or Madam:", 2) is True
        assert is_header_paragraph("Dear Sir or Madam:", 6) is False
        assert is_header_paragraph(LONG, 1) is False
