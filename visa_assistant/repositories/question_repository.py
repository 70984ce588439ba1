from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.database.models import ApplicationQuestion, ApplicationQuestionAnswer
from visa_assistant.repositories.base_repository import BaseRepository
from visa_assistant.schemas.questionnaire import QuestionAnswerInput
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class QuestionRepository(BaseRepository[ApplicationQuestion]):
    """Read access to active questionnaire items."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ApplicationQuestion)

    async def list_main_questions(self, step_number: Optional[int] = None) -> List[ApplicationQuestion]:
        """Active top-level questions ordered by step and position."""
        try:
            query = select(ApplicationQuestion).where(
                ApplicationQuestion.is_active.is_(True),
                ApplicationQuestion.parent_question_id.is_(None),
            )
            if step_number is not None:
                query = query.where(ApplicationQuestion.step_number == step_number)
            query = query.order_by(ApplicationQuestion.step_number.asc(), ApplicationQuestion.order_index.asc())
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(f"Error listing questions for step {step_number}: {str(e)}", exc_info=True)
            raise

    async def list_follow_ups(
        self,
        parent_question_id: UUID,
        trigger_option: Optional[str] = None,
    ) -> List[ApplicationQuestion]:
        """Active follow-ups of a question, optionally only those one option triggers."""
        try:
            query = select(ApplicationQuestion).where(
                ApplicationQuestion.is_active.is_(True),
                ApplicationQuestion.parent_question_id == parent_question_id,
            )
            if trigger_option is not None:
                query = query.where(ApplicationQuestion.trigger_option == trigger_option)
            result = await self.session.execute(query.order_by(ApplicationQuestion.order_index.asc()))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(f"Error listing follow-ups of question {parent_question_id}: {str(e)}", exc_info=True)
            raise


class AnswerRepository(BaseRepository[ApplicationQuestionAnswer]):
    """Questionnaire answers, unique per (application, question)."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ApplicationQuestionAnswer)

    async def upsert_answers(self, application_id: UUID, answers: Sequence[QuestionAnswerInput]) -> int:
        """Insert answers, replacing any earlier answer to the same question.

        Returns:
            Number of answers written
        """
        now = datetime.now(timezone.utc)
        rows = [
            {
                "application_id": application_id,
                "question_id": answer.question_id,
                "selected_option": answer.selected_option,
                "answer_text": answer.answer_text,
                "updated_at": now,
            }
            for answer in answers
        ]
        statement = insert(ApplicationQuestionAnswer).values(rows)
        statement = statement.on_conflict_do_update(
            index_elements=[ApplicationQuestionAnswer.application_id, ApplicationQuestionAnswer.question_id],
            set_={
                "selected_option": statement.excluded.selected_option,
                "answer_text": statement.excluded.answer_text,
                "updated_at": statement.excluded.updated_at,
            },
        )
        try:
            await self.session.execute(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                f"Error saving answers for application {application_id}: {str(e)}",
                exc_info=True,
            )
            raise
        LOGGER.info(
            f"Saved {len(rows)} answers",
            extra={"application_id": str(application_id), "answers": len(rows)},
        )
        return len(rows)

    async def list_by_application(self, application_id: UUID) -> List[ApplicationQuestionAnswer]:
        return await self.get_all(
            filters={"application_id": application_id},
            order_by="created_at",
        )
