"""Unit tests for the document requirement resolver."""

import pytest

from visa_assistant.schemas.application import CanonicalApplicationRecord
from visa_assistant.schemas.documents import DocumentCategory
from visa_assistant.services.requirements import resolver
from visa_assistant.services.requirements.resolver import CATEGORY_ORDER, get_document_summary, resolve


def _record(funding_source=None) -> CanonicalApplicationRecord:
    return CanonicalApplicationRecord.model_validate({"financialSupport": {"fundingSource": funding_source}})


def _required_ids(requirements):
    return [d.id for d in requirements.documents if d.required]


class TestResolve:

    def test_baseline_requires_only_applicant_documents(self):
        requirements = resolve(None)

        assert _required_ids(requirements) == ["applicant_passport", "applicant_i94", "applicant_i20"]
        assert requirements.total_required == len(requirements.documents) == 13

    @pytest.mark.parametrize(
        "source, category",
        [
            ("self", DocumentCategory.FINANCIAL_SELF),
            ("sponsor", DocumentCategory.FINANCIAL_SPONSOR),
            ("scholarship", DocumentCategory.FINANCIAL_SCHOLARSHIP),
            ("other", DocumentCategory.FINANCIAL_OTHER),
        ],
    )
    def test_only_matching_financial_category_is_required(self, source, category):
        requirements = resolve(_record(source))

        financial = [d for d in requirements.documents if d.category.value.startswith("financial_")]
        required = {d.category for d in financial if d.required}
        assert required == {category}
        for document in financial:
            suffix = "(Required)" if document.category == category else "(if applicable)"
            assert document.description.endswith(suffix)

    def test_funding_source_is_case_insensitive(self):
        requirements = resolve(_record(" Sponsor "))

        assert "sponsor_bank_statements" in _required_ids(requirements)

    def test_ties_and_dependents_are_always_optional(self):
        requirements = resolve(_record("self"))

        for category in (DocumentCategory.TIES_TO_COUNTRY, DocumentCategory.DEPENDENTS):
            assert requirements.by_category[category]
            assert all(not d.required for d in requirements.by_category[category])

    def test_documents_follow_category_order(self):
        requirements = resolve(_record("scholarship"))

        positions = [CATEGORY_ORDER.index(d.category) for d in requirements.documents]
        assert positions == sorted(positions)
        assert list(requirements.by_category) == CATEGORY_ORDER

    def test_requirements_are_recomputed_not_cached(self):
        first = resolve(_record("self"))
        second = resolve(_record("sponsor"))

        assert "applicant_bank_statements" in _required_ids(first)
        assert "applicant_bank_statements" not in _required_ids(second)


class TestDocumentSummary:

    def test_groups_are_labelled_and_counted(self):
        summary = get_document_summary(resolve(_record("self")))

        assert summary.total == 13
        assert [g.category for g in summary.by_category] == CATEGORY_ORDER
        applicant = summary.by_category[0]
        assert applicant.label == resolver.CATEGORY_LABELS[DocumentCategory.APPLICANT_REQUIRED]
        assert applicant.count == 3
