from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.database.models import Application
from visa_assistant.repositories.base_repository import BaseRepository
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ApplicationRepository(BaseRepository[Application]):
    """Repository for Application records, always scoped by owner where it matters."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Application)

    async def create_application(
        self,
        user_id: str,
        country: str = "",
        visa_type: str = "F-1",
        form_data: Optional[dict] = None,
        case_id: Optional[str] = None,
    ) -> Application:
        """Create a draft application.

        Args:
            user_id: Identity-provider user id of the owner
            country: Applicant home country
            visa_type: Requested visa type
            form_data: Initial canonical record (camelCase JSON)
            case_id: Human-readable unique case reference

        Returns:
            Created Application
        """
        application = await self.create(
            user_id=user_id,
            country=country,
            visa_type=visa_type,
            status="draft",
            case_id=case_id,
            form_data=form_data or {},
        )
        LOGGER.info(
            f"Created application {application.id}",
            extra={"application_id": str(application.id), "user_id": user_id},
        )
        return application

    async def list_by_user(self, user_id: str, skip: int = 0, limit: int = 100) -> List[Application]:
        return await self.get_all(
            skip=skip,
            limit=limit,
            filters={"user_id": user_id},
            order_by="created_at",
            descending=True,
        )

    async def update_form_data(self, application_id: UUID, form_data: dict) -> Optional[Application]:
        return await self.update(application_id, form_data=form_data)

    async def case_id_exists(self, case_id: str) -> bool:
        return await self.count(filters={"case_id": case_id}) > 0

    async def get_for_update(self, application_id: UUID) -> Optional[Application]:
        """Load an application with a row lock held until the next commit.

        Attributes already loaded in this session are overwritten with the
        locked row, so callers always merge on top of the latest form data.
        """
        try:
            query = (
                select(Application)
                .where(Application.id == application_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error locking application {application_id}: {str(e)}",
                exc_info=True,
            )
            raise
