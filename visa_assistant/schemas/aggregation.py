"""Read-only aggregated view over an application, its owner and its documents."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from visa_assistant.schemas.application import Address, DependentsBlock, FinancialSupport, TiesToCountry


class UserSummary(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None


class ApplicationSummary(BaseModel):
    id: str
    country: str = ""
    visa_type: str = ""
    current_address: Optional[Address] = None


class FormDataSummary(BaseModel):
    ties_to_country: Optional[TiesToCountry] = None
    dependents: Optional[DependentsBlock] = None
    financial_support: Optional[FinancialSupport] = None


class PassportSummary(BaseModel):
    name: Optional[str] = None
    passport_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    place_of_birth: Optional[str] = None
    nationality: Optional[str] = None
    gender: Optional[str] = None
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None


class I94Summary(BaseModel):
    name: Optional[str] = None
    admission_number: Optional[str] = None
    class_of_admission: Optional[str] = None
    date_of_admission: Optional[str] = None
    admit_until_date: Optional[str] = None
    passport_number: Optional[str] = None


class I20Summary(BaseModel):
    student_name: Optional[str] = None
    sevis_id: Optional[str] = None
    school_name: Optional[str] = None
    program_of_study: Optional[str] = None
    program_level: Optional[str] = None
    major_field: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    date_of_birth: Optional[str] = None
    country_of_birth: Optional[str] = None
    country_of_citizenship: Optional[str] = None
    financial_support: Optional[Any] = None
    extracted_data: Dict[str, Any] = Field(default_factory=dict)


class BankStatementSummary(BaseModel):
    type: str
    account_holder_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    closing_balance: Optional[str] = None
    currency: str = "USD"
    statement_period: Optional[str] = None
    opening_balance: Optional[str] = None
    total_deposits: Optional[str] = None
    total_withdrawals: Optional[str] = None

    @property
    def is_sponsor(self) -> bool:
        return self.type.startswith("sponsor_")


class AssetSummary(BaseModel):
    type: str
    asset_type: Optional[str] = None
    owner_name: Optional[str] = None
    asset_value: Optional[str] = None
    asset_description: Optional[str] = None


class TiesDocumentSummary(BaseModel):
    document_type: Optional[str] = None
    owner_name: Optional[str] = None
    property_address: Optional[str] = None
    property_value: Optional[str] = None
    employment_company: Optional[str] = None
    employment_position: Optional[str] = None


class ScholarshipSummary(BaseModel):
    document_type: str = "scholarship_award_letter"
    scholarship_name: Optional[str] = None
    award_amount: Optional[str] = None
    institution_name: Optional[str] = None
    document_date: Optional[str] = None
    extracted_data: Dict[str, Any] = Field(default_factory=dict)


class OtherFundingSummary(BaseModel):
    document_type: str = "other_funding"
    funding_source: Optional[str] = None
    amount: Optional[str] = None
    institution_name: Optional[str] = None
    document_date: Optional[str] = None
    extracted_data: Dict[str, Any] = Field(default_factory=dict)


class ExtractedDocumentsSummary(BaseModel):
    """Per-type extraction summaries: first-wins singletons, append-all lists."""

    passport: Optional[PassportSummary] = None
    i94: Optional[I94Summary] = None
    i20: Optional[I20Summary] = None
    bank_statements: List[BankStatementSummary] = Field(default_factory=list)
    assets: List[AssetSummary] = Field(default_factory=list)
    ties_documents: List[TiesDocumentSummary] = Field(default_factory=list)
    scholarship_documents: List[ScholarshipSummary] = Field(default_factory=list)
    other_funding_documents: List[OtherFundingSummary] = Field(default_factory=list)


class DocumentListItem(BaseModel):
    type: str
    name: str
    status: str


class SponsorSummary(BaseModel):
    sponsor_name: str = ""
    total_balance: str = ""
    statement_count: int = 0


class AggregatedApplicationData(BaseModel):
    user: UserSummary
    application: ApplicationSummary
    form_data: FormDataSummary
    documents: ExtractedDocumentsSummary
    document_list: List[DocumentListItem] = Field(default_factory=list)
    sponsor_summary: SponsorSummary = Field(default_factory=SponsorSummary)
