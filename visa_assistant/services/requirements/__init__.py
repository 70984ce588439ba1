"""Document requirement resolution."""

from visa_assistant.services.requirements.resolver import CATEGORY_ORDER, get_document_summary, resolve

__all__ = ["CATEGORY_ORDER", "get_document_summary", "resolve"]
