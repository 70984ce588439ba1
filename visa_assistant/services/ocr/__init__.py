"""OCR / Document AI collaborator."""

from visa_assistant.services.ocr.document_ai_client import DocumentAIClient, flatten_response

__all__ = ["DocumentAIClient", "flatten_response"]
