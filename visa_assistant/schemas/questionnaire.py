"""Schemas for the step-by-step application questionnaire."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from visa_assistant.schemas.application import CamelModel


class QuestionOption(BaseModel):
    label: str
    text: str = ""


class QuestionResponse(BaseModel):
    """Questionnaire item as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    step_number: int
    theme: str
    question_text: str
    question_type: str
    options: List[QuestionOption] = Field(default_factory=list)
    order_index: int
    is_required: bool = True
    category: Optional[str] = None
    help_text: Optional[str] = None
    parent_question_id: Optional[UUID] = None
    trigger_option: Optional[str] = None


class QuestionAnswerInput(CamelModel):
    """One answer as sent by the web client."""

    question_id: UUID
    selected_option: str = Field(..., min_length=1)
    answer_text: str = ""


class SaveAnswersRequest(CamelModel):
    answers: List[QuestionAnswerInput] = Field(default_factory=list)


class AnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: UUID
    selected_option: str
    answer_text: str
    updated_at: Optional[datetime] = None


class SaveAnswersResult(BaseModel):
    """Outcome of saving answers.

    ``form_data_updated`` is False when deriving the application record from
    the answers failed; the answers themselves are stored either way.
    """

    saved: int
    form_data_updated: bool
