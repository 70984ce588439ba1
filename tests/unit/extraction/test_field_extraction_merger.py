"""Unit tests for FieldExtractionMerger.

Covers balance summing, sponsor name resolution, ties distribution,
dependent deduplication and idempotence over repeated merges.
"""

from uuid import uuid4

import pytest

from visa_assistant.schemas.application import CanonicalApplicationRecord, Dependent, DependentsBlock
from visa_assistant.schemas.documents import DocumentStatus, ExtractedDocument
from visa_assistant.services.extraction.merger import (
    DEFAULT_DEPENDENT_RELATIONSHIP,
    FieldExtractionMerger,
    distribute_ties_texts,
    merge,
)


def _doc(doc_type: str, fields=None, status=DocumentStatus.COMPLETED) -> ExtractedDocument:
    return ExtractedDocument(id=uuid4(), type=doc_type, name=f"{doc_type}.pdf", status=status, extracted_fields=fields)


class TestBalances:
    """Savings and sponsor totals."""

    def test_bank_statements_are_summed_with_two_decimals(self):
        documents = [
            _doc("bank_statement", {"closingBalance": "$1,500.25"}),
            _doc("bank_statement", {"ending_balance": "2000.25"}),
        ]

        result = merge(documents)

        assert result.record.financial_support.savings_amount == "3500.50"
        assert result.merged_document_count == 2
        assert result.warnings == []

    def test_raw_text_fallback_finds_closing_balance(self):
        documents = [_doc("bank_statement", {"rawText": "Statement\nEnding balance: $4,200.00\nThank you"})]

        result = merge(documents)

        assert result.record.financial_support.savings_amount == "4200.00"

    def test_missing_balance_produces_warning_and_keeps_existing_amount(self):
        existing = CanonicalApplicationRecord.model_validate({"financialSupport": {"savingsAmount": "900.00"}})

        result = merge([_doc("bank_statement", {"bankName": "Chase"})], existing)

        assert result.record.financial_support.savings_amount == "900.00"
        assert len(result.warnings) == 1
        assert result.warnings[0].document_type == "bank_statement"

    def test_sponsor_statements_sum_separately(self):
        documents = [
            _doc("bank_statement", {"closingBalance": "100"}),
            _doc("sponsor_bank_statement", {"closingBalance": "20000", "accountHolderName": "Joao Pereira"}),
        ]

        result = merge(documents)

        support = result.record.financial_support
        assert support.savings_amount == "100.00"
        assert support.sponsor_amount == "20000.00"
        assert support.sponsor_name == "Joao Pereira"

    def test_first_sponsor_name_wins(self):
        documents = [
            _doc("sponsor_assets", {"ownerName": "Ana Costa"}),
            _doc("sponsor_bank_statement", {"closingBalance": "10", "accountHolderName": "Joao Pereira"}),
        ]

        result = merge(documents)

        assert result.record.financial_support.sponsor_name == "Ana Costa"

    def test_pending_documents_are_ignored(self):
        documents = [
            _doc("bank_statement", {"closingBalance": "500"}, status=DocumentStatus.PENDING),
            _doc("bank_statement", None),
        ]

        result = merge(documents)

        assert result.merged_document_count == 0
        assert result.record.financial_support.savings_amount == ""


class TestTies:
    """Ties-to-country text distribution."""

    def test_single_text_with_three_sentences_is_split_into_thirds(self):
        answers = distribute_ties_texts(["One. Two. Three"])

        assert answers == ["One", "Two", "Three"]

    def test_single_short_text_answers_first_question(self):
        answers = distribute_ties_texts(["Only one sentence here"])

        assert answers == ["Only one sentence here", None, None]

    def test_two_texts_fill_first_two_questions(self):
        assert distribute_ties_texts(["a", "b"]) == ["a", "b", None]

    def test_structured_ties_fields_are_described(self):
        existing = CanonicalApplicationRecord.model_validate({"tiesToCountry": {"question3": "Kept"}})
        documents = [
            _doc("supporting_documents", {"familyMemberName": "Jose", "relationshipType": "Father"}),
            _doc("supporting_documents", {"propertyAddress": "Rua A, 10", "propertyValue": "200000"}),
        ]

        result = merge(documents, existing)

        ties = result.record.ties_to_country
        assert ties.question1 == "Family member: Jose, Relationship: Father"
        assert ties.question2 == "Property: Rua A, 10, Value: 200000"
        assert ties.question3 == "Kept"

    def test_empty_ties_document_warns(self):
        result = merge([_doc("supporting_documents", {"rawText": "   "})])

        assert result.record.ties_to_country.question1 == ""
        assert [w.message for w in result.warnings] == ["No ties information found"]


class TestDependents:
    """Dependent extraction and deduplication."""

    def test_dependents_deduplicated_by_case_insensitive_name(self):
        documents = [
            _doc("dependent_passport", {"name": "Maria Silva", "dateOfBirth": "2015-02-01"}),
            _doc("dependent_i94", {"name": "maria silva", "placeOfBirth": "Recife"}),
        ]

        result = merge(documents)

        dependents = result.record.dependents
        assert dependents.has_dependents is True
        assert len(dependents.dependents) == 1
        only = dependents.dependents[0]
        assert only.full_name == "Maria Silva"
        assert only.date_of_birth == "2015-02-01"
        assert only.country_of_birth == "Recife"
        assert only.relationship == DEFAULT_DEPENDENT_RELATIONSHIP

    def test_existing_dependents_are_kept(self):
        existing = CanonicalApplicationRecord(
            dependents=DependentsBlock(
                has_dependents=True,
                dependents=[Dependent(id="dep_1", full_name="Pedro Silva", relationship="Child")],
            )
        )

        result = merge([_doc("dependent_passport", {"first_name": "Ana", "last_name": "Silva"})], existing)

        names = [d.full_name for d in result.record.dependents.dependents]
        assert names == ["Pedro Silva", "Ana Silva"]

    def test_dependent_without_name_warns(self):
        result = merge([_doc("dependent_i20", {"sevisId": "N001"})])

        assert result.record.dependents.has_dependents is False
        assert result.warnings[0].message == "Dependent document has no name"


class TestMergeProperties:
    """Purity and idempotence."""

    @pytest.fixture
    def documents(self):
        return [
            _doc("bank_statement", {"closingBalance": "1500.25"}),
            _doc("bank_statement", {"closingBalance": "2000.25"}),
            _doc("dependent_passport", {"name": "Maria Silva"}),
            _doc("supporting_documents", {"rawText": "A. B. C. D."}),
        ]

    def test_merge_is_idempotent(self, documents):
        merger = FieldExtractionMerger()

        first = merger.merge(documents)
        second = merger.merge(documents, first.record)

        assert second.record == first.record

    def test_existing_record_is_not_mutated(self, documents):
        existing = CanonicalApplicationRecord(applicant_name="Maria Silva")
        snapshot = existing.model_copy(deep=True)

        merge(documents, existing)

        assert existing == snapshot

    def test_bad_document_becomes_warning(self, documents):
        class ExplodingResolver:
            def resolve_structured(self, *args, **kwargs):
                raise RuntimeError("boom")

            def resolve_from_text(self, *args, **kwargs):
                return None

            def resolve(self, *args, **kwargs):
                return None

        result = FieldExtractionMerger(resolver=ExplodingResolver()).merge(documents[:1])

        assert result.merged_document_count == 0
        assert result.warnings[0].message == "Extraction failed: boom"


class TestCompletionOrder:
    """Workers finish in any order; singletons follow the order merged."""

    @pytest.fixture
    def sponsor_documents(self):
        return [
            _doc("sponsor_bank_statement", {"closingBalance": "10000", "accountHolderName": "Ana Costa"}),
            _doc("sponsor_bank_statement", {"closingBalance": "5000", "accountHolderName": "Joao Pereira"}),
        ]

    def test_reordered_sponsor_statements_change_sponsor_name(self, sponsor_documents):
        in_order = merge(sponsor_documents)
        reversed_order = merge(list(reversed(sponsor_documents)))

        assert in_order.record.financial_support.sponsor_name == "Ana Costa"
        assert reversed_order.record.financial_support.sponsor_name == "Joao Pereira"

    def test_reordering_keeps_sums(self, sponsor_documents):
        in_order = merge(sponsor_documents)
        reversed_order = merge(list(reversed(sponsor_documents)))

        assert in_order.record.financial_support.sponsor_amount == "15000.00"
        assert reversed_order.record.financial_support.sponsor_amount == "15000.00"
