from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.database.models import GeneratedDocument
from visa_assistant.repositories.base_repository import BaseRepository
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class GeneratedDocumentRepository(BaseRepository[GeneratedDocument]):
    """Versioned storage of generated documents.

    At most one row per ``(application_id, document_type)`` has
    ``is_current = true``; versions increase monotonically.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, GeneratedDocument)

    async def save_new_version(
        self,
        application_id: UUID,
        user_id: str,
        document_type: str,
        content: str,
    ) -> GeneratedDocument:
        """Store content as the new current version.

        The previous current row is demoted and the new row gets
        ``max(version) + 1``, all inside one transaction.

        Args:
            application_id: Owning application
            user_id: Owner id
            document_type: One of the generated document types
            content: Document text

        Returns:
            The new current GeneratedDocument
        """
        try:
            scope = (
                GeneratedDocument.application_id == application_id,
                GeneratedDocument.document_type == document_type,
            )
            latest = await self.session.scalar(
                select(func.max(GeneratedDocument.version)).where(*scope)
            )
            await self.session.execute(
                update(GeneratedDocument)
                .where(*scope, GeneratedDocument.is_current.is_(True))
                .values(is_current=False)
            )
            document = GeneratedDocument(
                application_id=application_id,
                user_id=user_id,
                document_type=document_type,
                content=content,
                version=(latest or 0) + 1,
                is_current=True,
            )
            self.session.add(document)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(document)
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                f"Error saving {document_type} for application {application_id}: {str(e)}",
                exc_info=True,
            )
            raise

        LOGGER.info(
            f"Saved {document_type} version {document.version}",
            extra={"application_id": str(application_id), "document_type": document_type},
        )
        return document

    async def get_current(self, application_id: UUID, document_type: str) -> Optional[GeneratedDocument]:
        result = await self.session.execute(
            select(GeneratedDocument).where(
                GeneratedDocument.application_id == application_id,
                GeneratedDocument.document_type == document_type,
                GeneratedDocument.is_current.is_(True),
            )
        )
        return result.scalars().first()

    async def list_current(self, application_id: UUID) -> List[GeneratedDocument]:
        """Current version of every generated document type, by type name."""
        result = await self.session.execute(
            select(GeneratedDocument)
            .where(
                GeneratedDocument.application_id == application_id,
                GeneratedDocument.is_current.is_(True),
            )
            .order_by(GeneratedDocument.document_type.asc())
        )
        return list(result.scalars().all())
