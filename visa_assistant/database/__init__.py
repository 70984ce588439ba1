"""Database models for applications, uploaded documents and generated documents."""

from visa_assistant.database.models import Application, Document, GeneratedDocument

__all__ = ["Application", "Document", "GeneratedDocument"]
