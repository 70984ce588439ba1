from fastapi import APIRouter

from visa_assistant.api.v1.endpoints import applications, documents, letters, questionnaire, ties

api_router = APIRouter()

api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(letters.router, prefix="/letters", tags=["Letters"])
api_router.include_router(ties.router, prefix="/ties", tags=["Ties"])
api_router.include_router(questionnaire.router, tags=["Questionnaire"])

__all__ = ["api_router"]
