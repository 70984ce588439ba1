"""Cover letter generation and the downloadable outputs built from it."""

import string
from datetime import date
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.database.models import GeneratedDocument
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.repositories.generated_document_repository import GeneratedDocumentRepository
from visa_assistant.schemas.aggregation import AggregatedApplicationData
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.letters import GeneratedDocumentType
from visa_assistant.services.aggregation.aggregator import ApplicationDataAggregator
from visa_assistant.services.layout.letter_parser import parse_letter_for_layout
from visa_assistant.services.layout.pagination import PaginationPlanner
from visa_assistant.services.letters.assembler import CoverLetterAssembler
from visa_assistant.services.letters.mapper import map_to_i539_context
from visa_assistant.services.letters.rules import LetterRuleValidator, ValidationResult, ensure_valid
from visa_assistant.services.ownership import require_user
from visa_assistant.services.rendering.backend import RenderingBackend
from visa_assistant.services.rendering.fill_guide import render_fill_guide
from visa_assistant.services.rendering.form_fill import FormFillResult, build_form_context
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


def exhibit_label(index: int) -> str:
    letters = string.ascii_uppercase
    if index < len(letters):
        return letters[index]
    return letters[index // len(letters) - 1] + letters[index % len(letters)]


def exhibit_items_from_documents(data: AggregatedApplicationData) -> List[str]:
    """One ``Exhibit X: Type (file name)`` line per uploaded document."""
    items = []
    for i, document in enumerate(data.document_list):
        title = document.type.replace("_", " ").title()
        items.append(f"Exhibit {exhibit_label(i)}: {title} ({document.name})")
    return items


def exhibit_items_from_text(content: str) -> List[str]:
    return [line.strip() for line in content.splitlines() if line.strip()]


class LetterService:
    """Validates, assembles and renders the I-539 cover letter package.

    Every operation re-aggregates the application; nothing derived is cached
    between requests.

    Attributes:
        aggregator: Builds the read-only application view (ownership checked)
        generated_repository: Versioned generated documents
        rendering: Shared renderers created at startup
        assembler: Template assembler
    """

    def __init__(
        self,
        aggregator: ApplicationDataAggregator,
        generated_repository: GeneratedDocumentRepository,
        rendering: RenderingBackend,
        assembler: Optional[CoverLetterAssembler] = None,
    ):
        self.aggregator = aggregator
        self.generated_repository = generated_repository
        self.rendering = rendering
        self.assembler = assembler or CoverLetterAssembler()

    @classmethod
    def from_session(cls, session: AsyncSession, rendering: RenderingBackend) -> "LetterService":
        return cls(
            ApplicationDataAggregator(ApplicationRepository(session), DocumentRepository(session)),
            GeneratedDocumentRepository(session),
            rendering,
        )

    async def build_context(
        self,
        application_id: UUID,
        user: Optional[CurrentUser],
        today: Optional[date] = None,
    ) -> Tuple[AggregatedApplicationData, Dict[str, str]]:
        data = await self.aggregator.aggregate(application_id, user)
        return data, map_to_i539_context(data, today=today)

    async def validate_letter(
        self,
        application_id: UUID,
        user: Optional[CurrentUser],
        today: Optional[date] = None,
    ) -> Tuple[ValidationResult, Dict[str, str]]:
        _, context = await self.build_context(application_id, user, today)
        return LetterRuleValidator(today=today).validate(context), context

    async def generate_cover_letter(
        self,
        application_id: UUID,
        user: Optional[CurrentUser],
        today: Optional[date] = None,
    ) -> GeneratedDocument:
        """Assemble the cover letter and store it as the new current version.

        Raises:
            TemplateValidationError: The context has errors; nothing is stored
        """
        user = require_user(user)
        _, context = await self.build_context(application_id, user, today)
        result = ensure_valid(context, today=today)
        letter = self.assembler.assemble(context)

        document = await self.generated_repository.save_new_version(
            application_id=application_id,
            user_id=user.id,
            document_type=GeneratedDocumentType.COVER_LETTER.value,
            content=letter,
        )
        LOGGER.info(
            "Generated cover letter",
            extra={
                "application_id": str(application_id),
                "version": document.version,
                "warnings": len(result.warnings),
            },
        )
        return document

    async def save_document(
        self,
        application_id: UUID,
        document_type: GeneratedDocumentType,
        content: str,
        user: Optional[CurrentUser],
    ) -> GeneratedDocument:
        """Store edited text for any generated document type as a new version."""
        user = require_user(user)
        await self.aggregator.aggregate(application_id, user)
        return await self.generated_repository.save_new_version(
            application_id=application_id,
            user_id=user.id,
            document_type=document_type.value,
            content=content,
        )

    async def get_current_documents(self, application_id: UUID, user: Optional[CurrentUser]) -> List[GeneratedDocument]:
        await self.aggregator.aggregate(application_id, user)
        return await self.generated_repository.list_current(application_id)

    async def render_combined_pdf(
        self,
        application_id: UUID,
        user: Optional[CurrentUser],
        today: Optional[date] = None,
    ) -> bytes:
        """Render cover letter, financial summary, personal statement, signature and exhibits.

        Uses the current stored cover letter when there is one; otherwise the
        letter is assembled (and validated) on the fly without storing it.
        """
        data, context = await self.build_context(application_id, user, today)

        current = {
            doc.document_type: doc
            for doc in await self.generated_repository.list_current(application_id)
        }
        cover = current.get(GeneratedDocumentType.COVER_LETTER.value)
        if cover is not None:
            letter = cover.content
        else:
            ensure_valid(context, today=today)
            letter = self.assembler.assemble(context)

        personal = current.get(GeneratedDocumentType.PERSONAL_STATEMENT.value)
        exhibit_list = current.get(GeneratedDocumentType.EXHIBIT_LIST.value)
        exhibits = (
            exhibit_items_from_text(exhibit_list.content)
            if exhibit_list is not None
            else exhibit_items_from_documents(data)
        )

        parsed = parse_letter_for_layout(
            letter,
            personal_statement=personal.content if personal is not None else None,
            exhibit_items=exhibits,
            applicant_name=context.get("signatory_name") or None,
        )
        pages = PaginationPlanner(self.rendering.budgets).plan(parsed)
        pdf_bytes = self.rendering.combined_pdf.render(pages)

        LOGGER.info(
            "Rendered combined PDF",
            extra={"application_id": str(application_id), "pages": len(pages), "bytes": len(pdf_bytes)},
        )
        return pdf_bytes

    async def fill_i539(
        self,
        application_id: UUID,
        user: Optional[CurrentUser],
        today: Optional[date] = None,
    ) -> FormFillResult:
        data = await self.aggregator.aggregate(application_id, user)
        result = await self.rendering.form_filler.fill(data, today=today)
        LOGGER.info(
            "I-539 form fill finished",
            extra={
                "application_id": str(application_id),
                "success": result.success,
                "filled": result.filled,
                "method": result.method,
            },
        )
        return result

    async def fill_guide(self, application_id: UUID, user: Optional[CurrentUser], today: Optional[date] = None) -> str:
        data = await self.aggregator.aggregate(application_id, user)
        return render_fill_guide(build_form_context(data, today=today))

    async def export_docx(self, application_id: UUID, user: Optional[CurrentUser], today: Optional[date] = None) -> bytes:
        data = await self.aggregator.aggregate(application_id, user)
        generated = await self.generated_repository.list_current(application_id)
        return self.rendering.docx.build(data, generated, today=today)
