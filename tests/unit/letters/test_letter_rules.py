"""Unit tests for cover letter business rules."""

from datetime import date

import pytest

from visa_assistant.core.exceptions import TemplateValidationError
from visa_assistant.services.letters.rules import ensure_valid, parse_money, validate

TODAY = date(2025, 3, 1)


@pytest.fixture
def context():
    return {
        "entry_date": "September 15, 2024",
        "current_status": "B-2",
        "requested_status": "F-1",
        "home_country": "a national of Brazil",
        "signatory_name": "Maria Silva",
        "applicant_address_line1": "100 Main St",
        "applicant_city_state_zip": "Boston, MA, 02110",
        "ina_section": "248",
        "personal_funds_usd": "USD $12,346",
        "sponsor_funds_usd": "USD $0",
        "total_funds_usd": "USD $12,346",
        "sponsor_name": "",
    }


class TestValidate:

    def test_complete_context_is_valid(self, context):
        result = validate(context, today=TODAY)

        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_missing_entry_date_is_an_error(self, context):
        context["entry_date"] = ""

        result = validate(context, today=TODAY)

        assert result.valid is False
        assert result.errors == ["entry_date is required"]

    def test_future_entry_date_is_an_error(self, context):
        context["entry_date"] = "April 1, 2025"

        result = validate(context, today=TODAY)

        assert "entry_date cannot be in the future" in result.errors

    def test_unparsable_entry_date_is_an_error(self, context):
        context["entry_date"] = "sometime last fall"

        result = validate(context, today=TODAY)

        assert result.errors == ["Invalid entry_date format: sometime last fall"]

    def test_negative_amount_is_an_error(self, context):
        context["total_funds_usd"] = "USD -$500"

        result = validate(context, today=TODAY)

        assert "total_funds_usd cannot be negative" in result.errors

    def test_status_and_funds_warnings(self, context):
        context.update(current_status="H-1B", personal_funds_usd="USD $500")

        result = validate(context, today=TODAY)

        assert result.valid is True
        assert len(result.warnings) == 2

    def test_sponsor_without_funds_warns(self, context):
        context["sponsor_name"] = "Joao Pereira"

        result = validate(context, today=TODAY)

        assert any(w.startswith("sponsor_name provided") for w in result.warnings)

    def test_address_shape_warnings(self, context):
        context.update(applicant_address_line1="1 A", applicant_city_state_zip="Boston MA 02110")

        result = validate(context, today=TODAY)

        assert len(result.warnings) == 2


class TestEnsureValid:

    def test_raises_with_every_error(self, context):
        context.update(entry_date="", signatory_name="  ")

        with pytest.raises(TemplateValidationError) as exc_info:
            ensure_valid(context, today=TODAY)

        assert exc_info.value.errors == ["entry_date is required", "signatory_name is required"]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("USD $12,346", 12346),
        ("-500", -500),
        ("$-20.5", -20.5),
    ],
)
def test_parse_money(value, expected):
    amount, parsed = parse_money(value)

    assert parsed is True
    assert float(amount) == expected
