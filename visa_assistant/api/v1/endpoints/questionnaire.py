"""Questionnaire endpoints: questions, follow-ups and per-application answers."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from visa_assistant.api.v1.dependencies import get_questionnaire_service
from visa_assistant.api.v1.errors import http_error
from visa_assistant.core.auth import get_current_user
from visa_assistant.core.exceptions import AppError
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.questionnaire import AnswerResponse, QuestionResponse, SaveAnswersRequest
from visa_assistant.services.questionnaire_service import QuestionnaireService
from visa_assistant.utils.responses import create_api_response

router = APIRouter()

UserDep = Annotated[CurrentUser, Depends(get_current_user)]
ServiceDep = Annotated[QuestionnaireService, Depends(get_questionnaire_service)]


def _questions(questions) -> list:
    return [QuestionResponse.model_validate(q).model_dump(mode="json") for q in questions]


@router.get(
    "/questions",
    response_model=dict,
    summary="List top-level questions",
    operation_id="list_questions",
)
async def list_questions(
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    step: Optional[int] = Query(None, ge=1, le=7),
) -> dict:
    try:
        questions = await service.list_questions(current_user, step)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={"items": _questions(questions), "total": len(questions)},
        message=f"Retrieved {len(questions)} questions",
        request=request,
    )


@router.get(
    "/questions/{question_id}/follow-ups",
    response_model=dict,
    summary="Follow-up questions triggered by one option",
    operation_id="list_follow_up_questions",
)
async def list_follow_up_questions(
    request: Request,
    question_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
    option: str = Query(..., min_length=1),
) -> dict:
    try:
        questions = await service.get_follow_up_questions(question_id, option, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={"items": _questions(questions), "total": len(questions)},
        message=f"Retrieved {len(questions)} follow-up questions",
        request=request,
    )


@router.get(
    "/applications/{application_id}/answers",
    response_model=dict,
    summary="Answers saved for an application",
    operation_id="get_question_answers",
)
async def get_answers(
    request: Request,
    application_id: UUID,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    try:
        answers = await service.get_answers(application_id, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data={
            "items": [AnswerResponse.model_validate(a).model_dump(mode="json") for a in answers],
            "total": len(answers),
        },
        message=f"Retrieved {len(answers)} answers",
        request=request,
    )


@router.put(
    "/applications/{application_id}/answers",
    response_model=dict,
    summary="Save answers and update the application's form data",
    operation_id="save_question_answers",
)
async def save_answers(
    request: Request,
    application_id: UUID,
    payload: SaveAnswersRequest,
    current_user: UserDep,
    service: ServiceDep,
) -> dict:
    """Answers replace earlier answers to the same questions."""
    try:
        result = await service.save_answers(application_id, payload.answers, current_user)
    except AppError as e:
        raise http_error(e, request) from e
    return create_api_response(
        data=result,
        message="Answers saved" if result.form_data_updated else "Answers saved; form data not updated",
        request=request,
    )
