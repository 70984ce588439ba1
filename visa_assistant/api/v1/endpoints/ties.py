"""AI drafting of ties-to-home-country answers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from visa_assistant.api.v1.dependencies import get_ties_answer_service
from visa_assistant.api.v1.errors import http_error
from visa_assistant.core.auth import get_current_user
from visa_assistant.core.exceptions import AppError
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.ties import TiesSelections
from visa_assistant.services.ai.ties_answer_service import TiesAnswerService
from visa_assistant.utils.responses import create_api_response

router = APIRouter()


@router.post(
    "/answers",
    response_model=dict,
    summary="Draft the three ties-to-country answers",
    operation_id="generate_ties_answers",
)
async def generate_ties_answers(
    request: Request,
    selections: TiesSelections,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    service: Annotated[TiesAnswerService, Depends(get_ties_answer_service)],
) -> dict:
    """Answers are drafts; the applicant edits them before they reach the letter."""
    try:
        answers = await service.generate(selections)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(data=answers.to_json_dict(), message="Answers generated", request=request)
