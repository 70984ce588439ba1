"""Sponsor-funded application from checklist to cover letter.

Runs the pure pipeline end to end: requirements, extraction merge,
aggregation, context mapping and letter assembly.
"""

from unittest.mock import MagicMock
from uuid import uuid4

from visa_assistant.database.models import Application
from visa_assistant.schemas.application import CanonicalApplicationRecord
from visa_assistant.schemas.documents import DocumentStatus, ExtractedDocument
from visa_assistant.services.aggregation.aggregator import ApplicationDataAggregator
from visa_assistant.services.extraction.merger import merge
from visa_assistant.services.letters.assembler import assemble
from visa_assistant.services.letters.mapper import map_to_i539_context
from visa_assistant.services.requirements.resolver import resolve

STATEMENT_TEXT = "Account Holder: Joao Pereira\nStatement period: January 2025\nClosing balance: $12,345.67\n"


def test_sponsor_statement_reaches_financial_capacity_section(current_user, today):
    record = CanonicalApplicationRecord.model_validate({"financialSupport": {"fundingSource": "sponsor"}})

    requirements = resolve(record)
    required = {d.id for d in requirements.documents if d.required}
    assert "sponsor_bank_statements" in required
    assert "applicant_bank_statements" not in required

    documents = [
        ExtractedDocument(
            id=uuid4(),
            type="sponsor_bank_statement",
            name="sponsor-statement.pdf",
            status=DocumentStatus.COMPLETED,
            extracted_fields={"rawText": STATEMENT_TEXT},
        )
    ]
    merged = merge(documents, record)
    support = merged.record.financial_support
    assert support.sponsor_amount == "12345.67"
    assert support.sponsor_name == "Joao Pereira"
    assert support.savings_amount == ""

    application = Application(
        id=uuid4(),
        user_id=current_user.id,
        country="Brazil",
        visa_type="F-1",
        form_data=merged.record.to_json_dict(),
    )
    aggregated = ApplicationDataAggregator(MagicMock(), MagicMock()).build(application, documents, current_user)
    assert aggregated.sponsor_summary.sponsor_name == "Joao Pereira"
    assert aggregated.sponsor_summary.total_balance == "12345.67"
    assert aggregated.sponsor_summary.statement_count == 1

    context = map_to_i539_context(aggregated, today=today)
    assert context["sponsor_funds_usd"] == "USD $12,346"

    letter = assemble(context)
    assert "Financial Sponsorship by Joao Pereira: USD $12,346" in letter
    assert "Total Available: USD $12,346" in letter
