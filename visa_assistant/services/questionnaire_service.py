"""Questionnaire answers and the form data derived from them.

Answers are stored first; deriving ``form_data`` from them is best effort.
A failed follow-up lookup drops that question's follow-ups from the map,
and a failed derivation is logged and reported as ``form_data_updated=False``
without undoing the saved answers.
"""

import re
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.core.exceptions import ValidationError
from visa_assistant.database.models import ApplicationQuestion, ApplicationQuestionAnswer
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.question_repository import AnswerRepository, QuestionRepository
from visa_assistant.schemas.application import CanonicalApplicationRecord, FundingSource
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.questionnaire import QuestionAnswerInput, SaveAnswersResult
from visa_assistant.services.ownership import get_owned_application, require_user
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

FINANCIAL_STEP = 7

SPONSOR_KEYWORDS = ("patrocinador", "sponsor", "suporte financeiro comprovado")
SELF_KEYWORDS = ("próprio", "self", "reservas financeiras")
SCHOLARSHIP_KEYWORDS = ("bolsa", "scholarship")
SPONSOR_CATEGORIES = ("financial_support_combination", "financial_support_sponsor")

OPTION_LETTER = re.compile(r"^(?:[A-E]|[A-C][1-3])$", re.IGNORECASE)
# Keyword is case-insensitive, the captured name must be capitalized
SPONSOR_NAME = re.compile(r"(?i:nome|patrocinador|sponsor)[\s:]+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")


def funding_source_from_answer(answer: QuestionAnswerInput) -> FundingSource:
    """Keywords first, then the option letter (A self, B sponsor, C scholarship)."""
    text = answer.answer_text.lower()
    option = answer.selected_option.strip().upper()
    if any(k in text for k in SPONSOR_KEYWORDS) or option == "B":
        return FundingSource.SPONSOR
    if any(k in text for k in SELF_KEYWORDS) or option == "A":
        return FundingSource.SELF
    if any(k in text for k in SCHOLARSHIP_KEYWORDS) or option == "C":
        return FundingSource.SCHOLARSHIP
    return FundingSource.OTHER


def sponsor_name_from_answer(answer_text: str, allow_leading_words: bool) -> Optional[str]:
    """Name after a sponsor keyword, else the first two capitalized words of a free answer."""
    match = SPONSOR_NAME.search(answer_text)
    if match:
        return match.group(1)
    if not allow_leading_words or len(answer_text) <= 10 or OPTION_LETTER.match(answer_text.strip()):
        return None
    words = answer_text.split()
    if len(words) >= 2 and len(words[0]) > 2 and words[0][0].isupper():
        return " ".join(words[:2])
    return None


def _is_yes(answer: QuestionAnswerInput) -> bool:
    option = answer.selected_option.lower()
    text = answer.answer_text.strip().lower()
    return "sim" in option or "yes" in option or text.startswith(("sim", "yes"))


def derive_form_data(
    answers: Sequence[QuestionAnswerInput],
    questions: Mapping[UUID, ApplicationQuestion],
    existing: Optional[CanonicalApplicationRecord] = None,
) -> CanonicalApplicationRecord:
    """Fold questionnaire answers into a copy of the application record.

    Only the financial-support step and dependent questions carry structured
    data. Fields the answers say nothing about keep their stored values, and
    answers to unknown questions are skipped.
    """
    record = (existing or CanonicalApplicationRecord()).model_copy(deep=True)
    support = record.financial_support

    for answer in answers:
        question = questions.get(answer.question_id)
        if question is None:
            LOGGER.debug(f"No question found for answer {answer.question_id}")
            continue

        category = (question.category or "").lower()
        theme = (question.theme or "").lower()
        question_text = (question.question_text or "").lower()
        is_follow_up = question.parent_question_id is not None
        answer_lower = answer.answer_text.lower()

        if question.step_number == FINANCIAL_STEP:
            if question.order_index == 1 and not is_follow_up:
                support.funding_source = funding_source_from_answer(answer)

            sponsor_category = any(c in category for c in SPONSOR_CATEGORIES)
            if sponsor_category or "patrocinador" in answer_lower or "sponsor" in answer_lower:
                name = sponsor_name_from_answer(answer.answer_text, allow_leading_words=sponsor_category and is_follow_up)
                if name:
                    support.sponsor_name = name

            if "scholarship" in category or "bolsa" in question_text or "scholarship" in question_text:
                if answer.answer_text and not OPTION_LETTER.match(answer.answer_text.strip()):
                    support.scholarship_name = answer.answer_text

            if "other" in category or "outro" in question_text or "other" in question_text:
                support.other_source = answer.answer_text

        if "dependent" in category or "dependent" in theme or "dependent" in question_text:
            record.dependents.has_dependents = _is_yes(answer)

    return record


class QuestionnaireService:
    """Owner-scoped questionnaire reads and answer saving."""

    def __init__(
        self,
        application_repository: ApplicationRepository,
        question_repository: QuestionRepository,
        answer_repository: AnswerRepository,
    ):
        self.application_repository = application_repository
        self.question_repository = question_repository
        self.answer_repository = answer_repository

    @classmethod
    def from_session(cls, session: AsyncSession) -> "QuestionnaireService":
        return cls(ApplicationRepository(session), QuestionRepository(session), AnswerRepository(session))

    async def list_questions(self, user: Optional[CurrentUser], step_number: Optional[int] = None) -> List[ApplicationQuestion]:
        require_user(user)
        return await self.question_repository.list_main_questions(step_number)

    async def get_follow_up_questions(
        self,
        parent_question_id: UUID,
        selected_option: str,
        user: Optional[CurrentUser],
    ) -> List[ApplicationQuestion]:
        require_user(user)
        return await self.question_repository.list_follow_ups(parent_question_id, selected_option)

    async def get_answers(self, application_id: UUID, user: Optional[CurrentUser]) -> List[ApplicationQuestionAnswer]:
        application = await get_owned_application(self.application_repository, application_id, user)
        return await self.answer_repository.list_by_application(application.id)

    async def save_answers(
        self,
        application_id: UUID,
        answers: Sequence[QuestionAnswerInput],
        user: Optional[CurrentUser],
    ) -> SaveAnswersResult:
        """Store answers, then fold them into the application's form data.

        Raises:
            UnauthenticatedError: No identity
            ValidationError: No answers given
            ApplicationNotFoundError: Unknown application id
            UnauthorizedError: Application owned by another identity
        """
        require_user(user)
        if not answers:
            raise ValidationError("Answers are required")
        application = await get_owned_application(self.application_repository, application_id, user)

        saved = await self.answer_repository.upsert_answers(application.id, answers)
        updated = await self._update_form_data(application.id, answers)
        return SaveAnswersResult(saved=saved, form_data_updated=updated)

    async def _question_map(self) -> Dict[UUID, ApplicationQuestion]:
        questions = await self.question_repository.list_main_questions()
        found = {q.id: q for q in questions}
        for question in questions:
            if not question.options:
                continue
            try:
                follow_ups = await self.question_repository.list_follow_ups(question.id)
            except SQLAlchemyError as e:
                LOGGER.warning(
                    f"Skipping follow-ups of question {question.id}: {e}",
                    extra={"question_id": str(question.id)},
                )
                continue
            found.update((f.id, f) for f in follow_ups)
        return found

    async def _update_form_data(self, application_id: UUID, answers: Sequence[QuestionAnswerInput]) -> bool:
        try:
            questions = await self._question_map()
            application = await self.application_repository.get_for_update(application_id)
            if application is None:
                return False
            record = derive_form_data(
                answers, questions, CanonicalApplicationRecord.from_form_data(application.form_data)
            )
            form_data = dict(application.form_data or {})
            form_data.update(record.to_json_dict())
            await self.application_repository.update_form_data(application_id, form_data)
        except Exception as e:
            LOGGER.error(
                f"Could not derive form data from answers for application {application_id}: {e}",
                exc_info=True,
                extra={"application_id": str(application_id)},
            )
            return False
        LOGGER.info(
            "Form data updated from questionnaire answers",
            extra={"application_id": str(application_id), "answers": len(answers)},
        )
        return True
