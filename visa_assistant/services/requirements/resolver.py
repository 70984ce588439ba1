"""Document requirement resolver.

Computes the upload checklist for an application from its canonical record.
Nothing here is persisted; the checklist is recomputed on every request.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from visa_assistant.schemas.application import CanonicalApplicationRecord, FundingSource
from visa_assistant.schemas.documents import (
    DocumentCategory,
    DocumentRequirements,
    DocumentSummary,
    DocumentSummaryGroup,
    DocumentType,
    RequiredDocument,
)
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

CATEGORY_ORDER: List[DocumentCategory] = [
    DocumentCategory.APPLICANT_REQUIRED,
    DocumentCategory.TIES_TO_COUNTRY,
    DocumentCategory.DEPENDENTS,
    DocumentCategory.FINANCIAL_SELF,
    DocumentCategory.FINANCIAL_SPONSOR,
    DocumentCategory.FINANCIAL_SCHOLARSHIP,
    DocumentCategory.FINANCIAL_OTHER,
]

CATEGORY_LABELS: Dict[DocumentCategory, str] = {
    DocumentCategory.APPLICANT_REQUIRED: "Applicant Documents (Required)",
    DocumentCategory.TIES_TO_COUNTRY: "Ties to Home Country",
    DocumentCategory.DEPENDENTS: "Dependents",
    DocumentCategory.FINANCIAL_SELF: "Financial Documents: Personal Funds",
    DocumentCategory.FINANCIAL_SPONSOR: "Financial Documents: Sponsor",
    DocumentCategory.FINANCIAL_SCHOLARSHIP: "Financial Documents: Scholarship",
    DocumentCategory.FINANCIAL_OTHER: "Financial Documents: Other Funding",
}

FUNDING_CATEGORY: Dict[FundingSource, DocumentCategory] = {
    FundingSource.SELF: DocumentCategory.FINANCIAL_SELF,
    FundingSource.SPONSOR: DocumentCategory.FINANCIAL_SPONSOR,
    FundingSource.SCHOLARSHIP: DocumentCategory.FINANCIAL_SCHOLARSHIP,
    FundingSource.OTHER: DocumentCategory.FINANCIAL_OTHER,
}


@dataclass(frozen=True)
class DocumentSlot:
    """Static definition of one checklist entry."""

    id: str
    category: DocumentCategory
    type: DocumentType
    label: str
    description: str


APPLICANT_SLOTS = (
    DocumentSlot(
        "applicant_passport", DocumentCategory.APPLICANT_REQUIRED, DocumentType.PASSPORT,
        "Applicant Passport", "Valid passport of the applicant",
    ),
    DocumentSlot(
        "applicant_i94", DocumentCategory.APPLICANT_REQUIRED, DocumentType.I94,
        "Applicant I-94", "I-94 arrival/departure record",
    ),
    DocumentSlot(
        "applicant_i20", DocumentCategory.APPLICANT_REQUIRED, DocumentType.I20,
        "Applicant I-20",
        "Form I-20 (Certificate of Eligibility for Nonimmigrant Student Status)",
    ),
)

OPTIONAL_SLOTS = (
    DocumentSlot(
        "ties_supporting_documents", DocumentCategory.TIES_TO_COUNTRY, DocumentType.SUPPORTING_DOCUMENTS,
        "Ties to Home Country Documents",
        "Documents proving ties to the home country (deeds, employment letters, etc.). "
        "Optional, but recommended to strengthen the application",
    ),
    DocumentSlot(
        "dependent_passports", DocumentCategory.DEPENDENTS, DocumentType.DEPENDENT_PASSPORT,
        "Dependent Passport(s)",
        "Passport of each dependent (spouse/children). Skip if you have no dependents",
    ),
    DocumentSlot(
        "dependent_i94s", DocumentCategory.DEPENDENTS, DocumentType.DEPENDENT_I94,
        "Dependent I-94 Record(s)",
        "I-94 arrival/departure record of each dependent. Skip if you have no dependents",
    ),
    DocumentSlot(
        "dependent_i20s", DocumentCategory.DEPENDENTS, DocumentType.DEPENDENT_I20,
        "Dependent F-2 I-20(s)",
        "Form I-20 F-2 of each dependent. Skip if you have no dependents",
    ),
)

FINANCIAL_SLOTS = (
    DocumentSlot(
        "applicant_bank_statements", DocumentCategory.FINANCIAL_SELF, DocumentType.BANK_STATEMENT,
        "Applicant Bank Statements", "Bank statements showing sufficient funds for the program",
    ),
    DocumentSlot(
        "applicant_assets", DocumentCategory.FINANCIAL_SELF, DocumentType.ASSETS,
        "Applicant Asset Documents", "Documents proving ownership of assets",
    ),
    DocumentSlot(
        "sponsor_bank_statements", DocumentCategory.FINANCIAL_SPONSOR, DocumentType.SPONSOR_BANK_STATEMENT,
        "Sponsor Bank Statements", "Sponsor bank statements showing sufficient funds",
    ),
    DocumentSlot(
        "sponsor_assets", DocumentCategory.FINANCIAL_SPONSOR, DocumentType.SPONSOR_ASSETS,
        "Sponsor Asset Documents", "Documents proving the sponsor's assets",
    ),
    DocumentSlot(
        "scholarship_award_letter", DocumentCategory.FINANCIAL_SCHOLARSHIP, DocumentType.SCHOLARSHIP_DOCUMENT,
        "Scholarship Award Letter", "Official documentation of the scholarship or grant awarded",
    ),
    DocumentSlot(
        "other_funding_documents", DocumentCategory.FINANCIAL_OTHER, DocumentType.OTHER_FUNDING,
        "Other Funding Source Documents", "Documentation proving the alternative funding source",
    ),
)


def _document(slot: DocumentSlot, required: bool, description: Optional[str] = None) -> RequiredDocument:
    return RequiredDocument(
        id=slot.id,
        category=slot.category,
        type=slot.type.value,
        label=slot.label,
        description=description or slot.description,
        required=required,
    )


def resolve(record: Optional[CanonicalApplicationRecord] = None) -> DocumentRequirements:
    """Compute the document checklist for an application record.

    The three applicant documents are always required. Ties and dependent
    slots are always listed as optional. All financial slots are listed and
    only those matching ``financialSupport.fundingSource`` are required.

    Args:
        record: Canonical record; None yields the default baseline

    Returns:
        DocumentRequirements in the fixed category order
    """
    record = record or CanonicalApplicationRecord()
    funding_source = record.financial_support.funding_source
    required_category = FUNDING_CATEGORY.get(funding_source) if funding_source else None

    documents: List[RequiredDocument] = [_document(slot, True) for slot in APPLICANT_SLOTS]
    documents.extend(_document(slot, False) for slot in OPTIONAL_SLOTS)
    for slot in FINANCIAL_SLOTS:
        required = slot.category == required_category
        suffix = "(Required)" if required else "(if applicable)"
        documents.append(_document(slot, required, f"{slot.description} {suffix}"))

    by_category: Dict[DocumentCategory, List[RequiredDocument]] = {c: [] for c in CATEGORY_ORDER}
    for document in documents:
        by_category[document.category].append(document)

    LOGGER.debug(
        "Resolved document requirements",
        extra={
            "funding_source": funding_source.value if funding_source else None,
            "documents": len(documents),
        },
    )
    return DocumentRequirements(
        documents=documents,
        total_required=len(documents),
        by_category=by_category,
    )


def get_document_summary(requirements: DocumentRequirements) -> DocumentSummary:
    """Group requirements under display labels, dropping empty categories."""
    groups = [
        DocumentSummaryGroup(
            category=category,
            label=CATEGORY_LABELS[category],
            count=len(requirements.by_category[category]),
            documents=requirements.by_category[category],
        )
        for category in CATEGORY_ORDER
        if requirements.by_category.get(category)
    ]
    return DocumentSummary(total=requirements.total_required, by_category=groups)
