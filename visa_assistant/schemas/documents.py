"""Schemas for uploaded documents and derived document requirements."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class DocumentType(str, Enum):
    """Fixed vocabulary of uploadable document types."""

    PASSPORT = "passport"
    I94 = "i94"
    I20 = "i20"
    BANK_STATEMENT = "bank_statement"
    SPONSOR_BANK_STATEMENT = "sponsor_bank_statement"
    ASSETS = "assets"
    SPONSOR_ASSETS = "sponsor_assets"
    SUPPORTING_DOCUMENTS = "supporting_documents"
    TIES_SUPPORTING_DOCUMENTS = "ties_supporting_documents"
    SCHOLARSHIP_DOCUMENT = "scholarship_document"
    OTHER_FUNDING = "other_funding"
    DEPENDENT_PASSPORT = "dependent_passport"
    DEPENDENT_I94 = "dependent_i94"
    DEPENDENT_I20 = "dependent_i20"


PROCESSABLE_TYPES = frozenset({
    DocumentType.PASSPORT.value,
    DocumentType.DEPENDENT_PASSPORT.value,
    DocumentType.I94.value,
    DocumentType.DEPENDENT_I94.value,
    DocumentType.I20.value,
    DocumentType.DEPENDENT_I20.value,
    DocumentType.BANK_STATEMENT.value,
    DocumentType.SPONSOR_BANK_STATEMENT.value,
    DocumentType.SUPPORTING_DOCUMENTS.value,
    DocumentType.ASSETS.value,
    DocumentType.SPONSOR_ASSETS.value,
    DocumentType.SCHOLARSHIP_DOCUMENT.value,
    DocumentType.OTHER_FUNDING.value,
})


class ExtractedDocument(BaseModel):
    """One uploaded file after (or awaiting) OCR extraction."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None
    type: str
    name: str = ""
    status: DocumentStatus = DocumentStatus.PENDING
    extracted_fields: Optional[Dict[str, Any]] = None

    @classmethod
    def from_model(cls, document: Any) -> "ExtractedDocument":
        """Build from a ``Document`` row, whose JSON column is ``extracted_data``."""
        return cls(
            id=document.id,
            type=document.type,
            name=document.name,
            status=document.status,
            extracted_fields=document.extracted_data,
        )

    @property
    def raw_text(self) -> Optional[str]:
        if not self.extracted_fields:
            return None
        raw = self.extracted_fields.get("rawText")
        return raw if isinstance(raw, str) and raw else None

    @property
    def is_mergeable(self) -> bool:
        return self.status == DocumentStatus.COMPLETED and self.extracted_fields is not None


class DocumentCategory(str, Enum):
    """Requirement categories in display order."""

    APPLICANT_REQUIRED = "applicant_required"
    TIES_TO_COUNTRY = "ties_to_country"
    DEPENDENTS = "dependents"
    FINANCIAL_SELF = "financial_self"
    FINANCIAL_SPONSOR = "financial_sponsor"
    FINANCIAL_SCHOLARSHIP = "financial_scholarship"
    FINANCIAL_OTHER = "financial_other"


class RequiredDocument(BaseModel):
    """A derived, non-persisted document slot for the upload checklist."""

    id: str
    category: DocumentCategory
    type: str
    label: str
    description: str = ""
    required: bool
    quantity: Optional[int] = None


class DocumentRequirements(BaseModel):
    documents: List[RequiredDocument]
    total_required: int
    by_category: Dict[DocumentCategory, List[RequiredDocument]]


class DocumentSummaryGroup(BaseModel):
    category: DocumentCategory
    label: str
    count: int
    documents: List[RequiredDocument]


class DocumentSummary(BaseModel):
    total: int
    by_category: List[DocumentSummaryGroup]


class DocumentResponse(BaseModel):
    """Uploaded document as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: Optional[UUID] = None
    name: str
    type: str
    file_url: str
    file_size: int
    mime_type: str
    status: str
    extracted_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class UploadUrlResponse(BaseModel):
    signed_url: str
    storage_path: str
    token: Optional[str] = None


class UploadResult(BaseModel):
    document: DocumentResponse
    processing_queued: bool = Field(..., description="Whether extraction was enqueued")
