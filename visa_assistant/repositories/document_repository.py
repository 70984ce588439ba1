from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.database.models import Document
from visa_assistant.repositories.base_repository import BaseRepository
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentRepository(BaseRepository[Document]):
    """Repository for uploaded Document records.

    Inherits from BaseRepository for standard CRUD operations.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Document)

    async def create_document(
        self,
        application_id: UUID,
        user_id: str,
        name: str,
        document_type: str,
        file_url: str,
        storage_path: str,
        file_size: int,
        mime_type: str,
        status: str = "pending",
    ) -> Document:
        """Create a document record for a freshly stored upload.

        Args:
            application_id: Owning application
            user_id: Owner id
            name: Original filename
            document_type: Document type tag (passport, i94...)
            file_url: Public URL of the stored blob
            storage_path: Object path inside the storage bucket
            file_size: Size in bytes
            mime_type: Content type
            status: Initial processing status

        Returns:
            Created Document record
        """
        return await self.create(
            application_id=application_id,
            user_id=user_id,
            name=name,
            type=document_type,
            file_url=file_url,
            storage_path=storage_path,
            file_size=file_size,
            mime_type=mime_type,
            status=status,
        )

    async def list_by_application(self, application_id: UUID) -> List[Document]:
        """Documents of an application in creation order."""
        try:
            query = (
                select(Document)
                .where(Document.application_id == application_id)
                .order_by(Document.created_at.asc())
            )
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error listing documents for application {application_id}: {str(e)}",
                exc_info=True,
            )
            raise

    async def update_status(self, document_id: UUID, status: str) -> bool:
        """Update document status.

        Returns:
            True if updated, False if not found
        """
        return await self.update(document_id, status=status) is not None

    async def store_extraction(
        self,
        document_id: UUID,
        extracted_data: Optional[Dict[str, Any]],
        status: str = "completed",
    ) -> Optional[Document]:
        return await self.update(document_id, extracted_data=extracted_data, status=status)
