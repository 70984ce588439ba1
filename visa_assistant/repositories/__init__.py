"""Data access layer."""

from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.base_repository import BaseRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.repositories.generated_document_repository import GeneratedDocumentRepository

__all__ = [
    "ApplicationRepository",
    "BaseRepository",
    "DocumentRepository",
    "GeneratedDocumentRepository",
]
