"""Business rules checked before an assembled cover letter is trusted.

Errors block letter generation; warnings are advisory and returned alongside.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Mapping, Optional, Tuple

from visa_assistant.core.exceptions import TemplateValidationError
from visa_assistant.utils.dates import parse_date
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

REQUIRED_FIELDS = [
    "entry_date",
    "current_status",
    "requested_status",
    "home_country",
    "signatory_name",
    "applicant_address_line1",
    "applicant_city_state_zip",
]

DATE_FIELDS = ["entry_date"]
MONEY_FIELDS = ["personal_funds_usd", "sponsor_funds_usd", "total_funds_usd"]

ELIGIBLE_CURRENT_STATUSES = ["B-1", "B-2", "WB", "WT"]
EXPECTED_REQUESTED_STATUS = "F-1"
EXPECTED_INA_SECTION = "248"
MINIMUM_PERSONAL_FUNDS = Decimal("1000")
MIN_ADDRESS_LENGTH = 5

_MONEY_PATTERN = re.compile(r"(-)?\s*\$?\s*(-)?([\d,]+(?:\.\d+)?)")


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def parse_money(value: str) -> Tuple[Optional[Decimal], bool]:
    """Parse a formatted amount such as ``USD $12,346`` or ``-500``.

    Returns:
        Tuple of (amount, parsed); amount carries the sign
    """
    match = _MONEY_PATTERN.search(str(value))
    if not match:
        return None, False
    try:
        amount = Decimal(match.group(3).replace(",", ""))
    except InvalidOperation:
        return None, False
    if match.group(1) or match.group(2):
        amount = -amount
    return amount, True


class LetterRuleValidator:
    """Validates the flat I-539 letter context.

    Args:
        today: Reference date for the future-date check; defaults to the current date
    """

    def __init__(self, today: Optional[date] = None):
        self.today = today

    def validate(self, context: Mapping[str, Optional[str]]) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        for name in REQUIRED_FIELDS:
            if _blank(context.get(name)):
                errors.append(f"{name} is required")

        self._check_dates(context, errors)
        self._check_statuses(context, warnings)
        self._check_money(context, errors, warnings)
        self._check_sponsor(context, warnings)
        self._check_address(context, warnings)

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
        LOGGER.info(
            f"Letter validation finished: valid={result.valid}",
            extra={"errors": len(errors), "warnings": len(warnings)},
        )
        return result

    def _check_dates(self, context: Mapping[str, Optional[str]], errors: List[str]) -> None:
        today = self.today or date.today()
        for name in DATE_FIELDS:
            value = context.get(name)
            if _blank(value):
                continue
            parsed = parse_date(value)
            if parsed is None:
                errors.append(f"Invalid {name} format: {value}")
            elif parsed > today:
                errors.append(f"{name} cannot be in the future")

    def _check_statuses(self, context: Mapping[str, Optional[str]], warnings: List[str]) -> None:
        current = context.get("current_status")
        if not _blank(current) and current not in ELIGIBLE_CURRENT_STATUSES:
            warnings.append(f"current_status '{current}' may not be eligible for change of status to F-1")

        requested = context.get("requested_status")
        if not _blank(requested) and requested != EXPECTED_REQUESTED_STATUS:
            warnings.append(f"requested_status '{requested}' is not F-1 - ensure this is correct")

        ina_section = context.get("ina_section")
        if not _blank(ina_section) and ina_section != EXPECTED_INA_SECTION:
            warnings.append(f"ina_section should be '248' for Form I-539, found '{ina_section}'")

    def _check_money(
        self,
        context: Mapping[str, Optional[str]],
        errors: List[str],
        warnings: List[str],
    ) -> None:
        for name in MONEY_FIELDS:
            value = context.get(name)
            if _blank(value):
                continue
            amount, parsed = parse_money(value)
            if not parsed:
                errors.append(f"{name} is not a valid amount: '{value}'")
            elif amount < 0:
                errors.append(f"{name} cannot be negative")
            elif name == "personal_funds_usd" and amount < MINIMUM_PERSONAL_FUNDS:
                warnings.append("personal_funds_usd seems low for F-1 status requirements")

    def _check_sponsor(self, context: Mapping[str, Optional[str]], warnings: List[str]) -> None:
        if _blank(context.get("sponsor_name")):
            return
        funds = context.get("sponsor_funds_usd")
        amount = parse_money(funds)[0] if not _blank(funds) else None
        if not amount:
            warnings.append(
                "sponsor_name provided but no sponsor_funds_usd - ensure financial capacity is documented"
            )

    def _check_address(self, context: Mapping[str, Optional[str]], warnings: List[str]) -> None:
        line1 = context.get("applicant_address_line1")
        if not _blank(line1) and len(line1.strip()) < MIN_ADDRESS_LENGTH:
            warnings.append("applicant_address_line1 seems too short")

        city_state_zip = context.get("applicant_city_state_zip")
        if not _blank(city_state_zip) and "," not in city_state_zip:
            warnings.append("applicant_city_state_zip should include city, state, and ZIP separated by commas")


def validate(context: Mapping[str, Optional[str]], today: Optional[date] = None) -> ValidationResult:
    """Validate a letter context; see ``LetterRuleValidator``."""
    return LetterRuleValidator(today).validate(context)


def ensure_valid(context: Mapping[str, Optional[str]], today: Optional[date] = None) -> ValidationResult:
    """Validate and raise when any error is present.

    Raises:
        TemplateValidationError: Carrying every error and warning
    """
    result = validate(context, today)
    if not result.valid:
        raise TemplateValidationError(result.errors, result.warnings)
    return result
