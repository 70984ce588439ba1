"""Document upload, listing and removal for an owned application."""

import os
import time
from typing import List, Optional
from uuid import UUID

from visa_assistant.core.exceptions import AppError, DocumentNotFoundError, UnauthorizedError, ValidationError
from visa_assistant.database.models import Document
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.documents import DocumentType, PROCESSABLE_TYPES, UploadUrlResponse
from visa_assistant.services.ownership import get_owned_application, require_user
from visa_assistant.services.queue.extraction_queue import ExtractionQueue, ExtractionTask
from visa_assistant.services.storage_service import StorageService
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

DOCUMENT_TYPES = frozenset(t.value for t in DocumentType)


def storage_path(user_id: str, application_id: UUID, document_type: str, filename: str, now_ms: Optional[int] = None) -> str:
    """``{user}/{application}/{type}-{timestamp_ms}.{ext}``"""
    extension = os.path.splitext(filename or "")[1].lstrip(".").lower() or "bin"
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{user_id}/{application_id}/{document_type}-{timestamp}.{extension}"


class DocumentService:
    """Stores uploads and hands processable ones to the extraction queue.

    Attributes:
        application_repository: Used for ownership checks
        document_repository: Document records
        storage: Blob storage collaborator
        extraction_queue: Background queue; when None uploads are stored only
    """

    def __init__(
        self,
        application_repository: ApplicationRepository,
        document_repository: DocumentRepository,
        storage: Optional[StorageService] = None,
        extraction_queue: Optional[ExtractionQueue] = None,
    ):
        self.application_repository = application_repository
        self.document_repository = document_repository
        self.storage = storage or StorageService()
        self.extraction_queue = extraction_queue

    async def upload_document(
        self,
        application_id: UUID,
        document_type: str,
        filename: str,
        content: bytes,
        content_type: str,
        user: Optional[CurrentUser],
    ) -> tuple[Document, bool]:
        """Store an upload and queue extraction when the type is processable.

        Returns immediately after enqueueing; extraction results land on the
        document record later.

        Returns:
            The created document and whether extraction was queued

        Raises:
            UnauthenticatedError: No identity
            ApplicationNotFoundError: Unknown application id
            UnauthorizedError: Application owned by another identity
            ValidationError: Unknown document type or empty file
            AppError: Storage upload failed
        """
        user = require_user(user)
        if document_type not in DOCUMENT_TYPES:
            raise ValidationError(f"Unknown document type: {document_type}")
        if not content:
            raise ValidationError("Uploaded file is empty")

        application = await get_owned_application(self.application_repository, application_id, user)

        path = storage_path(user.id, application.id, document_type, filename)
        file_url = await self.storage.upload_bytes(path, content, content_type)

        try:
            document = await self.document_repository.create_document(
                application_id=application.id,
                user_id=user.id,
                name=filename,
                document_type=document_type,
                file_url=file_url,
                storage_path=path,
                file_size=len(content),
                mime_type=content_type or "application/octet-stream",
            )
        except Exception:
            await self._discard_blob(path)
            raise

        queued = False
        if document_type in PROCESSABLE_TYPES and self.extraction_queue is not None:
            queued = self.extraction_queue.submit(ExtractionTask(
                document_id=document.id,
                application_id=application.id,
                file_url=file_url,
                document_type=document_type,
            ))

        LOGGER.info(
            f"Uploaded {document_type} document",
            extra={
                "document_id": str(document.id),
                "application_id": str(application.id),
                "size": len(content),
                "processing_queued": queued,
            },
        )
        return document, queued

    async def _discard_blob(self, path: str) -> None:
        """Remove a blob whose document record could not be created."""
        try:
            await self.storage.delete(path)
        except AppError as e:
            LOGGER.error(
                f"Could not remove orphaned upload {path}: {e}",
                extra={"storage_path": path},
            )

    async def get_upload_url(
        self,
        application_id: UUID,
        document_type: str,
        filename: str,
        user: Optional[CurrentUser],
    ) -> UploadUrlResponse:
        """Issue a signed URL for a direct client upload into the application's folder."""
        user = require_user(user)
        if document_type not in DOCUMENT_TYPES:
            raise ValidationError(f"Unknown document type: {document_type}")
        application = await get_owned_application(self.application_repository, application_id, user)

        signed = await self.storage.create_signed_upload_url(
            storage_path(user.id, application.id, document_type, filename)
        )
        return UploadUrlResponse(**signed)

    async def list_documents(self, application_id: UUID, user: Optional[CurrentUser]) -> List[Document]:
        application = await get_owned_application(self.application_repository, application_id, user)
        return await self.document_repository.list_by_application(application.id)

    async def delete_document(self, document_id: UUID, user: Optional[CurrentUser]) -> None:
        """Remove the blob and the record.

        Raises:
            UnauthenticatedError: No identity
            DocumentNotFoundError: Unknown document id
            UnauthorizedError: Document owned by another identity
        """
        user = require_user(user)
        document = await self.document_repository.get_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError()
        if document.user_id != user.id:
            LOGGER.warning(
                "Rejected delete of document owned by another user",
                extra={"document_id": str(document_id), "user_id": user.id},
            )
            raise UnauthorizedError()

        if document.storage_path:
            await self.storage.delete(document.storage_path)
        await self.document_repository.delete(document.id)
        LOGGER.info(f"Deleted document {document_id}", extra={"document_id": str(document_id)})
