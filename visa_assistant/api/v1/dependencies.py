"""Service dependencies shared by the v1 endpoints."""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from visa_assistant.core.database import get_async_session
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.services.ai.text_transform_service import TextTransformService
from visa_assistant.services.ai.ties_answer_service import TiesAnswerService
from visa_assistant.services.application_service import ApplicationService
from visa_assistant.services.document_service import DocumentService
from visa_assistant.services.letter_service import LetterService
from visa_assistant.services.questionnaire_service import QuestionnaireService
from visa_assistant.services.queue.extraction_queue import ExtractionQueue
from visa_assistant.services.rendering.backend import RenderingBackend

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


def get_rendering_backend(request: Request) -> RenderingBackend:
    return request.app.state.rendering


def get_extraction_queue(request: Request) -> Optional[ExtractionQueue]:
    return getattr(request.app.state, "extraction_queue", None)


async def get_application_service(db_session: SessionDep) -> ApplicationService:
    return ApplicationService.from_session(db_session)


async def get_document_service(
    db_session: SessionDep,
    extraction_queue: Annotated[Optional[ExtractionQueue], Depends(get_extraction_queue)],
) -> DocumentService:
    return DocumentService(
        ApplicationRepository(db_session),
        DocumentRepository(db_session),
        extraction_queue=extraction_queue,
    )


async def get_letter_service(
    db_session: SessionDep,
    rendering: Annotated[RenderingBackend, Depends(get_rendering_backend)],
) -> LetterService:
    return LetterService.from_session(db_session, rendering)


async def get_ties_answer_service() -> TiesAnswerService:
    return TiesAnswerService()


async def get_questionnaire_service(db_session: SessionDep) -> QuestionnaireService:
    return QuestionnaireService.from_session(db_session)


async def get_text_transform_service(db_session: SessionDep) -> TextTransformService:
    return TextTransformService(ApplicationRepository(db_session))
