"""Application CRUD, requirements and form-data reprocessing."""

import random
import re
import string
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.core.exceptions import ApplicationNotFoundError
from visa_assistant.database.models import Application
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.schemas.aggregation import AggregatedApplicationData
from visa_assistant.schemas.application import ApplicationCreate, ApplicationUpdate, CanonicalApplicationRecord
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.documents import DocumentRequirements, DocumentSummary, ExtractedDocument
from visa_assistant.services.aggregation.aggregator import ApplicationDataAggregator
from visa_assistant.services.extraction.merger import FieldExtractionMerger, MergeResult
from visa_assistant.services.ownership import get_owned_application, require_user
from visa_assistant.services.requirements.resolver import get_document_summary, resolve
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

WARNINGS_KEY = "extractionWarnings"
CASE_ID_ATTEMPTS = 10


def generate_case_id(first_name: Optional[str], last_name: Optional[str]) -> str:
    """``ABC123-FIRST-LAST`` with a random prefix; names reduced to A-Z."""
    code = "".join(random.choices(string.ascii_uppercase, k=3)) + "".join(random.choices(string.digits, k=3))
    first = re.sub(r"[^A-Z]", "", (first_name or "").upper()) or "USER"
    last = re.sub(r"[^A-Z]", "", (last_name or "").upper()) or "CASE"
    return f"{code}-{first}-{last}"


def form_data_with_warnings(result: MergeResult) -> dict:
    form_data = result.record.to_json_dict()
    form_data[WARNINGS_KEY] = [w.model_dump(mode="json") for w in result.warnings]
    return form_data


async def merge_and_persist(
    application_id: UUID,
    application_repository: ApplicationRepository,
    document_repository: DocumentRepository,
    merger: Optional[FieldExtractionMerger] = None,
) -> Optional[MergeResult]:
    """Re-run the merger over the application's documents and store the result.

    The application row stays locked from the read until ``update_form_data``
    commits, and documents are listed after the lock is taken, so concurrent
    merges of one application serialize and the last writer sees every
    completed document. Documents are merged in creation order on top of the
    stored record.

    Returns:
        The merge result, or None when the application no longer exists
    """
    application = await application_repository.get_for_update(application_id)
    if application is None:
        return None
    documents = await document_repository.list_by_application(application_id)
    result = (merger or FieldExtractionMerger()).merge(
        [ExtractedDocument.from_model(d) for d in documents],
        CanonicalApplicationRecord.from_form_data(application.form_data),
    )
    await application_repository.update_form_data(application_id, form_data_with_warnings(result))
    return result


class ApplicationService:
    """Owner-scoped application operations."""

    def __init__(
        self,
        application_repository: ApplicationRepository,
        document_repository: DocumentRepository,
        merger: Optional[FieldExtractionMerger] = None,
    ):
        self.application_repository = application_repository
        self.document_repository = document_repository
        self.merger = merger or FieldExtractionMerger()

    @classmethod
    def from_session(cls, session: AsyncSession) -> "ApplicationService":
        return cls(ApplicationRepository(session), DocumentRepository(session))

    async def create_application(self, payload: ApplicationCreate, user: Optional[CurrentUser]) -> Application:
        """Create a draft application with a unique case id.

        Raises:
            UnauthenticatedError: No identity
        """
        user = require_user(user)

        case_id = generate_case_id(user.first_name, user.last_name)
        for _ in range(CASE_ID_ATTEMPTS):
            if not await self.application_repository.case_id_exists(case_id):
                break
            case_id = generate_case_id(user.first_name, user.last_name)

        record = payload.form_data or CanonicalApplicationRecord()
        if not record.email and user.email:
            record = record.model_copy(update={"email": user.email})

        return await self.application_repository.create_application(
            user_id=user.id,
            country=payload.country,
            visa_type=payload.visa_type,
            form_data=record.to_json_dict(),
            case_id=case_id,
        )

    async def get_application(self, application_id: UUID, user: Optional[CurrentUser]) -> Application:
        return await get_owned_application(self.application_repository, application_id, user)

    async def list_applications(self, user: Optional[CurrentUser], skip: int = 0, limit: int = 100) -> List[Application]:
        user = require_user(user)
        return await self.application_repository.list_by_user(user.id, skip=skip, limit=limit)

    async def update_application(
        self,
        application_id: UUID,
        payload: ApplicationUpdate,
        user: Optional[CurrentUser],
    ) -> Application:
        """Apply a partial update; ``form_data`` replaces the stored record.

        Raises:
            UnauthenticatedError: No identity
            ApplicationNotFoundError: Unknown application id
            UnauthorizedError: Application owned by another identity
        """
        application = await get_owned_application(self.application_repository, application_id, user)

        changes = {}
        if payload.country is not None:
            changes["country"] = payload.country
        if payload.visa_type is not None:
            changes["visa_type"] = payload.visa_type
        if payload.status is not None:
            changes["status"] = payload.status.value
        if payload.form_data is not None:
            changes["form_data"] = payload.form_data.to_json_dict()

        if not changes:
            return application

        updated = await self.application_repository.update(application.id, **changes)
        LOGGER.info(
            f"Updated application {application_id}",
            extra={"application_id": str(application_id), "fields": sorted(changes)},
        )
        return updated

    async def delete_application(self, application_id: UUID, user: Optional[CurrentUser]) -> bool:
        """Delete an application; documents and generated documents cascade."""
        application = await get_owned_application(self.application_repository, application_id, user)
        deleted = await self.application_repository.delete(application.id)
        LOGGER.info(f"Deleted application {application_id}", extra={"application_id": str(application_id)})
        return deleted

    async def get_requirements(self, application_id: UUID, user: Optional[CurrentUser]) -> DocumentRequirements:
        application = await get_owned_application(self.application_repository, application_id, user)
        return resolve(CanonicalApplicationRecord.from_form_data(application.form_data))

    async def get_document_summary(self, application_id: UUID, user: Optional[CurrentUser]) -> DocumentSummary:
        return get_document_summary(await self.get_requirements(application_id, user))

    async def get_aggregated_data(self, application_id: UUID, user: Optional[CurrentUser]) -> AggregatedApplicationData:
        aggregator = ApplicationDataAggregator(self.application_repository, self.document_repository)
        return await aggregator.aggregate(application_id, user)

    async def reprocess_form_data(self, application_id: UUID, user: Optional[CurrentUser]) -> MergeResult:
        """Merge every completed document into the stored record again.

        Warnings are stored next to the record under ``extractionWarnings``
        and returned to the caller.
        """
        application = await get_owned_application(self.application_repository, application_id, user)
        result = await merge_and_persist(
            application.id, self.application_repository, self.document_repository, self.merger
        )
        if result is None:
            raise ApplicationNotFoundError()
        LOGGER.info(
            f"Reprocessed form data for application {application_id}",
            extra={
                "application_id": str(application_id),
                "merged_documents": result.merged_document_count,
                "warnings": len(result.warnings),
            },
        )
        return result
