"""Unit tests for CoverLetterAssembler."""

import pytest

from visa_assistant.core.exceptions import TemplateLoadError
from visa_assistant.services.letters.assembler import TEMPLATE_ORDER, CoverLetterAssembler
from visa_assistant.services.letters.mapper import map_to_i539_context


@pytest.fixture
def assembler():
    return CoverLetterAssembler()


class TestAssembler:

    def test_every_template_ships_with_the_package(self, assembler):
        for name in TEMPLATE_ORDER:
            assert assembler.load_template(name).strip()

    def test_sections_appear_in_fixed_order(self, assembler, aggregated_data, today):
        letter = assembler.assemble(map_to_i539_context(aggregated_data, today=today))

        header = letter.index("Re: Form I-539")
        financial = letter.index("Financial Requirements:")
        closing = letter.index("Respectfully submitted,")
        assert header < financial < closing
        assert letter.startswith("Maria Fernanda Silva")
        assert letter.endswith("Maria Fernanda Silva")

    def test_unresolved_values_stay_visible(self, assembler, aggregated_data, today):
        letter = assembler.assemble(map_to_i539_context(aggregated_data, today=today))

        assert "Tuition: {{tuition_usd}}" in letter

    def test_sections_are_separated_by_blank_lines(self, tmp_path):
        for index, name in enumerate(TEMPLATE_ORDER):
            (tmp_path / name).write_text(f"section {index}\n", encoding="utf-8")

        letter = CoverLetterAssembler(tmp_path).assemble({})

        assert letter.split("\n\n\n")[0] == "section 0"
        assert letter.endswith(f"section {len(TEMPLATE_ORDER) - 1}")

    def test_missing_template_raises(self, tmp_path):
        with pytest.raises(TemplateLoadError):
            CoverLetterAssembler(tmp_path).assemble({})
