"""Merge OCR-extracted document fields into the canonical application record.

The merger is a pure function over ``(documents, existing)``: it never touches
storage and never raises for a single bad document. Per-document problems are
collected as warnings on the returned ``MergeResult``.
"""

import math
import re
from decimal import Decimal
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from visa_assistant.schemas.application import CanonicalApplicationRecord, Dependent
from visa_assistant.schemas.documents import DocumentType, ExtractedDocument
from visa_assistant.services.extraction.field_aliases import FieldAliasResolver, default_resolver
from visa_assistant.utils.logging import get_logger
from visa_assistant.utils.money import format_decimal, parse_amount

LOGGER = get_logger(__name__)

TIES_TYPES = frozenset({
    DocumentType.SUPPORTING_DOCUMENTS.value,
    DocumentType.TIES_SUPPORTING_DOCUMENTS.value,
})
SPONSOR_NAME_TYPES = frozenset({
    DocumentType.SPONSOR_BANK_STATEMENT.value,
    DocumentType.SPONSOR_ASSETS.value,
})
DEPENDENT_TYPES = frozenset({
    DocumentType.DEPENDENT_PASSPORT.value,
    DocumentType.DEPENDENT_I94.value,
    DocumentType.DEPENDENT_I20.value,
})

DEFAULT_DEPENDENT_RELATIONSHIP = "Spouse/Child"

_SENTENCE_BOUNDARY = re.compile(r"\.\s+")


class MergeWarning(BaseModel):
    """A non-fatal problem met while merging one document."""

    document_id: Optional[str] = None
    document_type: str
    message: str


class MergeResult(BaseModel):
    """Merged record plus every warning collected along the way."""

    record: CanonicalApplicationRecord
    warnings: List[MergeWarning] = Field(default_factory=list)
    merged_document_count: int = 0


class _MergeState:
    """Accumulators for one merge run."""

    def __init__(self, existing: CanonicalApplicationRecord):
        self.savings_total = Decimal("0")
        self.sponsor_total = Decimal("0")
        self.sponsor_name: Optional[str] = None
        self.ties_texts: List[str] = []
        self.dependents: List[Dependent] = [d.model_copy() for d in existing.dependents.dependents]
        self.dependents_found = False
        self.warnings: List[MergeWarning] = []
        self.merged = 0

    def warn(self, document: ExtractedDocument, message: str) -> None:
        warning = MergeWarning(
            document_id=str(document.id) if document.id else None,
            document_type=document.type,
            message=message,
        )
        LOGGER.warning(
            f"Merge warning for {document.type}: {message}",
            extra={"document_id": warning.document_id, "document_type": document.type},
        )
        self.warnings.append(warning)


class FieldExtractionMerger:
    """Normalize extracted document fields into a ``CanonicalApplicationRecord``.

    Rules by document type:
        bank_statement: closing balances summed into ``savingsAmount``
        sponsor_bank_statement: balances summed into ``sponsorAmount``
        sponsor_*: first non-empty holder name becomes ``sponsorName``
        supporting_documents: texts distributed over the three ties questions
        dependent_*: dependents appended, deduplicated by full name

    Attributes:
        resolver: Alias resolver used for every field lookup
    """

    def __init__(self, resolver: Optional[FieldAliasResolver] = None):
        self.resolver = resolver or default_resolver

    def merge(
        self,
        documents: Iterable[ExtractedDocument],
        existing: Optional[CanonicalApplicationRecord] = None,
    ) -> MergeResult:
        """Merge completed documents into a copy of ``existing``.

        Args:
            documents: Documents in creation order
            existing: Current record; defaults to an empty record

        Returns:
            MergeResult with the merged record and collected warnings
        """
        base = existing or CanonicalApplicationRecord()
        record = base.model_copy(deep=True)
        state = _MergeState(record)

        for document in documents:
            if not document.is_mergeable:
                continue
            try:
                self._merge_document(document, state)
                state.merged += 1
            except Exception as e:
                state.warn(document, f"Extraction failed: {e}")

        self._apply(record, state)

        LOGGER.info(
            f"Merged {state.merged} documents into application record",
            extra={
                "merged_documents": state.merged,
                "warnings": len(state.warnings),
                "dependents": len(state.dependents),
            },
        )
        return MergeResult(record=record, warnings=state.warnings, merged_document_count=state.merged)

    def _merge_document(self, document: ExtractedDocument, state: _MergeState) -> None:
        fields = document.extracted_fields or {}
        doc_type = document.type

        if doc_type == DocumentType.BANK_STATEMENT.value:
            balance = self._closing_balance(fields)
            if balance is None:
                state.warn(document, "No closing balance found")
            else:
                state.savings_total += balance

        if doc_type == DocumentType.SPONSOR_BANK_STATEMENT.value:
            balance = self._closing_balance(fields)
            if balance is None:
                state.warn(document, "No sponsor closing balance found")
            else:
                state.sponsor_total += balance

        if doc_type in SPONSOR_NAME_TYPES and not state.sponsor_name:
            state.sponsor_name = self.resolver.resolve("sponsor_name", fields)

        if doc_type in TIES_TYPES:
            text = self._ties_text(fields)
            if text:
                state.ties_texts.append(text)
            else:
                state.warn(document, "No ties information found")

        if doc_type in DEPENDENT_TYPES:
            self._merge_dependent(document, fields, state)

    def _closing_balance(self, fields: dict) -> Optional[Decimal]:
        structured = self.resolver.resolve_structured("closing_balance", fields)
        amount = parse_amount(structured)
        if amount is not None:
            return amount
        return parse_amount(self.resolver.resolve_from_text("closing_balance", fields.get("rawText")))

    def _ties_text(self, fields: dict) -> Optional[str]:
        resolve = self.resolver.resolve_structured
        parts = []
        family_member = resolve("family_member_name", fields)
        relationship = resolve("relationship_type", fields)
        if family_member or relationship:
            parts.append(f"Family member: {family_member or 'N/A'}, Relationship: {relationship or 'N/A'}")
        property_address = resolve("property_address", fields)
        if property_address:
            parts.append(f"Property: {property_address}, Value: {resolve('property_value', fields) or 'N/A'}")
        company = resolve("employment_company", fields)
        if company:
            parts.append(f"Employment: {company}, Position: {resolve('employment_position', fields) or 'N/A'}")
        if parts:
            return ". ".join(parts)
        raw_text = fields.get("rawText")
        if isinstance(raw_text, str) and raw_text.strip():
            return raw_text.strip()
        return None

    def _merge_dependent(self, document: ExtractedDocument, fields: dict, state: _MergeState) -> None:
        name = self.resolver.resolve_structured("person_name", fields)
        if not name:
            state.warn(document, "Dependent document has no name")
            return
        date_of_birth = self.resolver.resolve_structured("date_of_birth", fields) or ""
        country_of_birth = self.resolver.resolve_structured("country_of_birth", fields) or ""
        state.dependents_found = True

        key = name.strip().lower()
        for dependent in state.dependents:
            if dependent.full_name.strip().lower() == key:
                if not dependent.date_of_birth and date_of_birth:
                    dependent.date_of_birth = date_of_birth
                if not dependent.country_of_birth and country_of_birth:
                    dependent.country_of_birth = country_of_birth
                return

        state.dependents.append(Dependent(
            id=f"dep_{len(state.dependents) + 1}",
            full_name=name,
            relationship=self.resolver.resolve_structured("relationship", fields) or DEFAULT_DEPENDENT_RELATIONSHIP,
            date_of_birth=date_of_birth,
            country_of_birth=country_of_birth,
        ))

    def _apply(self, record: CanonicalApplicationRecord, state: _MergeState) -> None:
        support = record.financial_support
        if state.savings_total > 0:
            support.savings_amount = format_decimal(state.savings_total)
        if state.sponsor_total > 0:
            support.sponsor_amount = format_decimal(state.sponsor_total)
        if state.sponsor_name:
            support.sponsor_name = state.sponsor_name

        if state.ties_texts:
            answers = distribute_ties_texts(state.ties_texts)
            ties = record.ties_to_country
            for index, answer in enumerate(answers, start=1):
                if answer:
                    setattr(ties, f"question{index}", answer)

        if state.dependents_found:
            record.dependents.has_dependents = True
            record.dependents.dependents = state.dependents


def distribute_ties_texts(texts: List[str]) -> List[Optional[str]]:
    """Spread ties texts over the three questions.

    Three or more texts take one question each; two fill the first two
    questions. A single text is split at sentence boundaries into thirds
    when it has at least three sentences, otherwise it answers question 1.
    """
    if len(texts) >= 3:
        return [texts[0], texts[1], texts[2]]
    if len(texts) == 2:
        return [texts[0], texts[1], None]
    if not texts:
        return [None, None, None]

    text = texts[0]
    sentences = [s for s in _SENTENCE_BOUNDARY.split(text) if s.strip()]
    if len(sentences) < 3:
        return [text, None, None]
    n = len(sentences)
    first, second = math.ceil(n / 3), math.ceil(2 * n / 3)
    return [
        ". ".join(sentences[:first]),
        ". ".join(sentences[first:second]),
        ". ".join(sentences[second:]),
    ]


_default_merger = FieldExtractionMerger()


def merge(
    documents: Iterable[ExtractedDocument],
    existing: Optional[CanonicalApplicationRecord] = None,
) -> MergeResult:
    """Merge with the default alias table."""
    return _default_merger.merge(documents, existing)
