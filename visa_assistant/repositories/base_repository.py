from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from uuid import UUID
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Generic async CRUD over one SQLAlchemy model.

    Every method logs and re-raises ``SQLAlchemyError``; callers decide how
    a failed query is surfaced.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: Model class managed by this repository
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    def _filtered(self, query, filters: Optional[Dict[str, Any]]):
        for name, value in (filters or {}).items():
            if hasattr(self.model, name):
                query = query.where(getattr(self.model, name) == value)
        return query

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error loading {self.model.__name__} {id}: {str(e)}",
                exc_info=True,
            )
            raise

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 200,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[ModelType]:
        """List records with optional equality filters and ordering.

        Args:
            skip: Records to skip
            limit: Maximum records returned
            filters: ``{column: value}`` equality filters; unknown columns are ignored
            order_by: Column name to sort on
            descending: Sort direction for ``order_by``

        Returns:
            List of records
        """
        try:
            query = self._filtered(select(self.model), filters)
            if order_by and hasattr(self.model, order_by):
                column = getattr(self.model, order_by)
                query = query.order_by(column.desc() if descending else column.asc())
            result = await self.session.execute(query.offset(skip).limit(limit))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error listing {self.model.__name__}: {str(e)}",
                exc_info=True,
            )
            raise

    async def create(self, **kwargs) -> ModelType:
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            await self.session.commit()
            # Load server defaults (created_at) while still in async context
            await self.session.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error creating {self.model.__name__}: {str(e)}",
                exc_info=True,
            )
            raise

    async def update(self, id: UUID, **kwargs) -> Optional[ModelType]:
        """Set attributes on an existing record and bump ``updated_at``.

        Returns:
            The updated record, or None if it does not exist
        """
        try:
            instance = await self.get_by_id(id)
            if instance is None:
                return None
            for key, value in kwargs.items():
                if hasattr(instance, key):
                    setattr(instance, key, value)
            if hasattr(instance, "updated_at"):
                instance.updated_at = datetime.now(timezone.utc)
            await self.session.flush()
            await self.session.commit()
            return instance
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error updating {self.model.__name__} {id}: {str(e)}",
                exc_info=True,
            )
            raise

    async def delete(self, id: UUID) -> bool:
        try:
            instance = await self.get_by_id(id)
            if instance is None:
                return False
            await self.session.delete(instance)
            await self.session.flush()
            await self.session.commit()
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error deleting {self.model.__name__} {id}: {str(e)}",
                exc_info=True,
            )
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            query = self._filtered(select(func.count()).select_from(self.model), filters)
            result = await self.session.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error counting {self.model.__name__}: {str(e)}",
                exc_info=True,
            )
            raise
