"""Renderer-agnostic page content model used by the pagination planner."""

from typing import List, Optional

from pydantic import BaseModel, Field


class FinancialRequirements(BaseModel):
    tuition: Optional[str] = None
    living_expenses: Optional[str] = None
    total_required: Optional[str] = None


class AvailableResources(BaseModel):
    personal_funds: Optional[str] = None
    sponsor_name: Optional[str] = None
    sponsor_amount: Optional[str] = None
    total_available: Optional[str] = None


class FinancialData(BaseModel):
    """Structured financial summary block drawn on its own page."""

    financial_requirements: FinancialRequirements = Field(default_factory=FinancialRequirements)
    available_resources: AvailableResources = Field(default_factory=AvailableResources)

    @property
    def has_values(self) -> bool:
        req = self.financial_requirements
        res = self.available_resources
        return any([
            req.tuition, req.living_expenses, req.total_required,
            res.personal_funds is not None, res.sponsor_name, res.total_available,
        ])


class PageContent(BaseModel):
    """One printable page. Every section is optional."""

    letterhead: bool = False
    letterhead_title: Optional[str] = None
    cover_title: bool = False
    cover_header: Optional[str] = None
    cover_body: Optional[List[str]] = None
    financial: Optional[FinancialData] = None
    personal_heading: bool = False
    personal_paragraphs: Optional[List[str]] = None
    signature: Optional[str] = None
    exhibit_heading: bool = False
    exhibit_items: Optional[List[str]] = None


class ParsedForPdf(BaseModel):
    """Rendered sections ready for pagination."""

    cover_header: str = ""
    cover_body_paragraphs: List[str] = Field(default_factory=list)
    financial: Optional[FinancialData] = None
    personal_paragraphs: List[str] = Field(default_factory=list)
    applicant_name: str = ""
    exhibit_items: List[str] = Field(default_factory=list)


class ParagraphMergeAction(BaseModel):
    type: str = "MERGED_SHORT_PARAGRAPH"
    index: int


class ParagraphMergeResult(BaseModel):
    merged_paragraphs: List[str]
    actions: List[ParagraphMergeAction] = Field(default_factory=list)
