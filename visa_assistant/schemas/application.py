"""Canonical application record and its building blocks.

The record is persisted as JSON in ``applications.form_data`` using the
camelCase keys the web client sends (``fundingSource``, ``savingsAmount``...),
so every model here serializes by alias.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump with camelCase keys, as stored in ``form_data``."""
        return self.model_dump(by_alias=True, mode="json")


class FundingSource(str, Enum):
    """Discriminant deciding which financial documents are mandatory."""

    SELF = "self"
    SPONSOR = "sponsor"
    SCHOLARSHIP = "scholarship"
    OTHER = "other"


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SUBMITTED = "submitted"


class Address(CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class SponsorAddress(Address):
    country: str = ""


class TiesToCountry(CamelModel):
    """Free-text answers to the three ties-to-home-country questions."""

    question1: str = ""
    question2: str = ""
    question3: str = ""


class Dependent(CamelModel):
    id: str = ""
    full_name: str = ""
    relationship: str = ""
    date_of_birth: str = ""
    country_of_birth: str = ""


class DependentsBlock(CamelModel):
    has_dependents: bool = False
    dependents: List[Dependent] = Field(default_factory=list)


class FinancialSupport(CamelModel):
    funding_source: Optional[FundingSource] = None
    sponsor_name: str = ""
    sponsor_relationship: str = ""
    sponsor_address: SponsorAddress = Field(default_factory=SponsorAddress)
    annual_income: str = ""
    savings_amount: str = ""
    sponsor_amount: str = ""
    scholarship_name: str = ""
    other_source: str = ""

    @field_validator("funding_source", mode="before")
    @classmethod
    def _blank_source_is_unset(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if isinstance(value, str):
            return value.strip().lower()
        return value


class CanonicalApplicationRecord(CamelModel):
    """Normalized form data for one visa application."""

    applicant_name: str = ""
    email: str = ""
    current_address: Optional[Address] = None
    ties_to_country: TiesToCountry = Field(default_factory=TiesToCountry)
    dependents: DependentsBlock = Field(default_factory=DependentsBlock)
    financial_support: FinancialSupport = Field(default_factory=FinancialSupport)

    @classmethod
    def from_form_data(cls, form_data: Optional[dict]) -> "CanonicalApplicationRecord":
        """Build a record from stored ``form_data``, filling defaults for missing blocks."""
        return cls.model_validate(form_data or {})


class ApplicationCreate(BaseModel):
    """Payload for creating an application."""

    country: str = Field(default="", description="Applicant home country")
    visa_type: str = Field(default="F-1", description="Requested visa type")
    form_data: Optional[CanonicalApplicationRecord] = None


class ApplicationUpdate(BaseModel):
    """Payload for updating an application's form data or status."""

    country: Optional[str] = None
    visa_type: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    form_data: Optional[CanonicalApplicationRecord] = None


class ApplicationResponse(BaseModel):
    """Application as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    country: str
    visa_type: str
    status: str
    case_id: Optional[str] = None
    form_data: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
