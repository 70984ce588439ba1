"""Schemas for cover letter validation and generated documents."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class GeneratedDocumentType(str, Enum):
    COVER_LETTER = "cover_letter"
    PERSONAL_STATEMENT = "personal_statement"
    PROGRAM_JUSTIFICATION = "program_justification"
    TIES_TO_COUNTRY = "ties_to_country"
    SPONSOR_LETTER = "sponsor_letter"
    EXHIBIT_LIST = "exhibit_list"


class LetterValidationResponse(BaseModel):
    """Validation outcome plus the context that was validated."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    context: Dict[str, str] = Field(default_factory=dict)


class GeneratedDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    document_type: str
    content: str
    version: int
    is_current: bool
    created_at: Optional[datetime] = None


class GeneratedDocumentUpdate(BaseModel):
    """Edited text saved as a new version."""

    content: str = Field(..., min_length=1)
