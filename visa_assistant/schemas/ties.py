"""Schemas for AI-assisted ties-to-country answers."""

from typing import List, Optional

from pydantic import Field

from visa_assistant.schemas.application import CamelModel


class TiesSelections(CamelModel):
    """Structured choices the applicant made about their home-country ties."""

    family_members: List[str] = Field(default_factory=list)
    asset_types: List[str] = Field(default_factory=list)
    employment_types: List[str] = Field(default_factory=list)
    additional_info: Optional[str] = None
