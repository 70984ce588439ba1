"""Document AI client: turns an uploaded file into a flat field bag.

The processor returns ``document.entities`` (typed mentions, possibly with
nested ``properties``) and the full ``document.text``. Both are flattened to
``{entity_type: value, ..., "rawText": text}``; the merger resolves aliases.
"""

import base64
from typing import Any, Dict, Iterable, Optional

import httpx

from visa_assistant.core.config import DocumentAISettings, settings
from visa_assistant.core.exceptions import ConfigurationError, UpstreamServiceError
from visa_assistant.core.upstream_client import BaseUpstreamClient
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

PROCESSOR_GROUPS = {
    "passport": "identity",
    "dependent_passport": "identity",
    "i94": "i94",
    "dependent_i94": "i94",
    "i20": "i20",
    "dependent_i20": "i20",
    "bank_statement": "bank",
    "sponsor_bank_statement": "bank",
    "supporting_documents": "generic",
    "assets": "generic",
    "sponsor_assets": "generic",
    "scholarship_document": "generic",
    "other_funding": "generic",
}

MIME_BY_EXTENSION = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}


def detect_mime_type(file_url: str) -> str:
    path = file_url.split("?", 1)[0].lower()
    for extension, mime_type in MIME_BY_EXTENSION.items():
        if path.endswith(extension):
            return mime_type
    return "application/pdf"


def _entity_value(entity: Dict[str, Any]) -> Optional[str]:
    normalized = entity.get("normalizedValue") or {}
    anchor = entity.get("textAnchor") or {}
    value = entity.get("mentionText") or normalized.get("text") or anchor.get("content")
    return value.strip() if isinstance(value, str) and value.strip() else None


def flatten_entities(entities: Iterable[Dict[str, Any]], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Fold entities (and nested properties) into ``fields``; first value per type wins."""
    for entity in entities or []:
        entity_type = entity.get("type")
        value = _entity_value(entity)
        if entity_type and value and entity_type not in fields:
            fields[entity_type] = value
        flatten_entities(entity.get("properties") or [], fields)
    return fields


def flatten_response(response: Dict[str, Any]) -> Dict[str, Any]:
    document = response.get("document") or {}
    fields = flatten_entities(document.get("entities") or [], {})
    text = document.get("text")
    if isinstance(text, str) and text:
        fields["rawText"] = text
    return fields


class DocumentAIClient(BaseUpstreamClient):
    """Calls the configured Document AI processor for a document type."""

    service_name = "document_ai"

    def __init__(self, document_ai_settings: Optional[DocumentAISettings] = None):
        self.config = document_ai_settings or settings.document_ai
        super().__init__(
            api_key=self.config.token,
            base_url=self.config.endpoint.rstrip("/"),
            timeout=self.config.timeout,
            max_retries=1,
        )

    def processor_endpoint(self, document_type: str) -> str:
        processor_id = self.config.processors.get(PROCESSOR_GROUPS.get(document_type, "generic"))
        if processor_id:
            return f"/processors/{processor_id}:process"
        return ""

    async def download(self, file_url: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(file_url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            LOGGER.error(f"Failed to download file for extraction: {e}", extra={"file_url": file_url})
            raise UpstreamServiceError(
                f"Failed to download file: {e}", service=self.service_name, original_error=e
            ) from e

    async def extract(self, file_url: str, document_type: str) -> Dict[str, Any]:
        """Extract a field bag from a stored file.

        Args:
            file_url: Public URL of the uploaded file
            document_type: Uploaded document type tag

        Returns:
            Flat field dict, with ``rawText`` when the processor returned text

        Raises:
            ConfigurationError: No Document AI endpoint configured
            UpstreamServiceError: Download or processing failed
        """
        if not self.base_url:
            raise ConfigurationError("Document AI endpoint is not configured")

        content = await self.download(file_url)
        response = await self.call_api(
            endpoint=self.processor_endpoint(document_type),
            payload={
                "rawDocument": {
                    "mimeType": detect_mime_type(file_url),
                    "content": base64.b64encode(content).decode("ascii"),
                },
            },
        )
        fields = flatten_response(response)
        LOGGER.info(
            f"Extracted {len(fields)} fields from {document_type}",
            extra={"document_type": document_type, "has_raw_text": "rawText" in fields},
        )
        return fields
