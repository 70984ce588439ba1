"""Unit tests for LetterService."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from visa_assistant.core.exceptions import TemplateValidationError, UnauthorizedError
from visa_assistant.database.models import GeneratedDocument
from visa_assistant.schemas.letters import GeneratedDocumentType
from visa_assistant.services.layout.pagination import PageBudgets
from visa_assistant.services.letter_service import (
    LetterService,
    exhibit_items_from_documents,
    exhibit_label,
    exhibit_items_from_text,
)
from visa_assistant.services.rendering.backend import RenderingBackend
from visa_assistant.services.rendering.form_fill import FormFillResult


def _generated(document_type: str, content: str, version: int = 1) -> GeneratedDocument:
    return GeneratedDocument(
        id=uuid4(),
        application_id=uuid4(),
        user_id="user-123",
        document_type=document_type,
        content=content,
        version=version,
        is_current=True,
    )


def _page_text(pages) -> str:
    return " ".join(str(page.model_dump()) for page in pages)


@pytest.fixture
def aggregator(aggregated_data):
    mock = MagicMock()
    mock.aggregate = AsyncMock(return_value=aggregated_data)
    return mock


@pytest.fixture
def generated_repository():
    mock = MagicMock()
    mock.save_new_version = AsyncMock(
        side_effect=lambda **kwargs: _generated(kwargs["document_type"], kwargs["content"], version=2)
    )
    mock.list_current = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def rendering():
    combined = MagicMock()
    combined.render = MagicMock(return_value=b"%PDF-1.4 combined")
    filler = MagicMock()
    filler.fill = AsyncMock(return_value=FormFillResult(success=True, filled=True, pdf_bytes=b"%PDF", method="acroform"))
    docx = MagicMock()
    docx.build = MagicMock(return_value=b"PK docx")
    return RenderingBackend(combined_pdf=combined, form_filler=filler, docx=docx, budgets=PageBudgets())


@pytest.fixture
def service(aggregator, generated_repository, rendering):
    return LetterService(aggregator, generated_repository, rendering)


class TestExhibits:

    @pytest.mark.parametrize("index, label", [(0, "A"), (25, "Z"), (26, "AA"), (27, "AB"), (52, "BA")])
    def test_labels(self, index, label):
        assert exhibit_label(index) == label

    def test_items_from_uploaded_documents(self, aggregated_data):
        items = exhibit_items_from_documents(aggregated_data)

        assert items == [
            "Exhibit A: Passport (passport.pdf)",
            "Exhibit B: I94 (i94.pdf)",
            "Exhibit C: Bank Statement (statement.pdf)",
        ]

    def test_items_from_text_skip_blank_lines(self):
        assert exhibit_items_from_text("A. Passport\n\n  B. I-94  \n") == ["A. Passport", "B. I-94"]


class TestGenerateCoverLetter:

    @pytest.mark.asyncio
    async def test_valid_context_is_stored_as_new_version(self, service, generated_repository, current_user, today):
        application_id = uuid4()

        document = await service.generate_cover_letter(application_id, current_user, today)

        assert document.version == 2
        kwargs = generated_repository.save_new_version.await_args.kwargs
        assert kwargs["application_id"] == application_id
        assert kwargs["user_id"] == current_user.id
        assert kwargs["document_type"] == "cover_letter"
        assert "Maria Fernanda Silva" in kwargs["content"]

    @pytest.mark.asyncio
    async def test_invalid_context_stores_nothing(self, service, aggregated_data, generated_repository, current_user, today):
        aggregated_data.documents.i94 = None

        with pytest.raises(TemplateValidationError) as exc_info:
            await service.generate_cover_letter(uuid4(), current_user, today)

        assert "entry_date is required" in exc_info.value.errors
        generated_repository.save_new_version.assert_not_called()

    @pytest.mark.asyncio
    async def test_ownership_errors_propagate(self, service, aggregator, generated_repository, current_user):
        aggregator.aggregate.side_effect = UnauthorizedError()

        with pytest.raises(UnauthorizedError):
            await service.save_document(uuid4(), GeneratedDocumentType.EXHIBIT_LIST, "A. Passport", current_user)
        generated_repository.save_new_version.assert_not_called()


class TestCombinedPdf:

    @pytest.mark.asyncio
    async def test_stored_cover_letter_is_preferred(self, service, generated_repository, rendering, current_user, today):
        generated_repository.list_current.return_value = [
            _generated("cover_letter", "Dear Officer,\n\nThis stored letter was edited by hand.\n\nSincerely,"),
            _generated("exhibit_list", "A. Passport\nB. Form I-94"),
        ]
        service.assembler = MagicMock()

        content = await service.render_combined_pdf(uuid4(), current_user, today)

        assert content == b"%PDF-1.4 combined"
        service.assembler.assemble.assert_not_called()
        pages = rendering.combined_pdf.render.call_args.args[0]
        text = _page_text(pages)
        assert "This stored letter was edited by hand." in text
        assert "B. Form I-94" in text

    @pytest.mark.asyncio
    async def test_letter_is_assembled_when_none_is_stored(self, service, rendering, current_user, today):
        await service.render_combined_pdf(uuid4(), current_user, today)

        pages = rendering.combined_pdf.render.call_args.args[0]
        text = _page_text(pages)
        assert "Exhibit A: Passport (passport.pdf)" in text
        assert "12,346" in text

    @pytest.mark.asyncio
    async def test_unstored_invalid_letter_is_rejected(self, service, aggregated_data, rendering, current_user, today):
        aggregated_data.documents.i94 = None

        with pytest.raises(TemplateValidationError):
            await service.render_combined_pdf(uuid4(), current_user, today)
        rendering.combined_pdf.render.assert_not_called()


class TestOtherOutputs:

    @pytest.mark.asyncio
    async def test_fill_i539_delegates_to_filler(self, service, rendering, aggregated_data, current_user, today):
        result = await service.fill_i539(uuid4(), current_user, today)

        assert result.method == "acroform"
        rendering.form_filler.fill.assert_awaited_once_with(aggregated_data, today=today)

    @pytest.mark.asyncio
    async def test_fill_guide_is_html(self, service, current_user, today):
        html = await service.fill_guide(uuid4(), current_user, today)

        assert "BR1234567" in html

    @pytest.mark.asyncio
    async def test_docx_gets_current_documents(self, service, generated_repository, rendering, current_user, today):
        letter = _generated("cover_letter", "Dear Officer,")
        generated_repository.list_current.return_value = [letter]

        content = await service.export_docx(uuid4(), current_user, today)

        assert content == b"PK docx"
        assert rendering.docx.build.call_args.args[1] == [letter]
