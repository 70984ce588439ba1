"""Field alias resolver for OCR field bags.

Upstream extractors name the same logical field differently across document
types and vendors (``closingBalance``, ``closing_balance``, ``endingBalance``...).
This module keeps the candidate keys and the raw-text fallback patterns for
every logical field in one table, so new aliases are added as data.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Pattern, Sequence, Tuple, Union

from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

# A candidate is a single key, or a tuple of keys joined with a space
# (``("first_name", "last_name")``) that only matches when all are present.
Candidate = Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class FieldRule:
    """Ordered aliases and raw-text patterns for one logical field.

    Attributes:
        aliases: Candidate keys tried in priority order
        patterns: Regexes tried against ``rawText`` in order; group 1 is the value
        flags: Flags used when compiling ``patterns``
    """

    aliases: Tuple[Candidate, ...]
    patterns: Tuple[str, ...] = ()
    flags: int = 0
    compiled: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "compiled", tuple(re.compile(p, self.flags) for p in self.patterns)
        )


KNOWN_BANKS = (
    "BANK OF AMERICA|CHASE|WELLS FARGO|CITIBANK|US BANK|PNC|TD BANK|CAPITAL ONE|"
    "SUNTRUST|REGIONS|BB&T|HUNTINGTON|KEYBANK|FIFTH THIRD|M&T BANK|BMO HARRIS"
)

COMMON_SURNAMES = (
    "PEREIRA|SOUZA|SILVA|SANTOS|OLIVEIRA|COSTA|RODRIGUES|ALMEIDA|NASCIMENTO|LIMA|"
    "ARAUJO|FERREIRA|BARBOSA|RIBEIRO|CARVALHO|ALVES|MOREIRA|FERNANDES|GOMES|MARTINS"
)

FIELD_RULES: Dict[str, FieldRule] = {
    "closing_balance": FieldRule(
        aliases=(
            "closingBalance", "closing_balance", "endingBalance", "ending_balance",
            "totalBalance", "total_balance", "balance",
        ),
        patterns=(
            r"(?:Ending|Closing|Total)\s+balance[:\s]*\$?([\d,]+\.?\d*)",
            r"Total\s+balance[:\s]*\$?([\d,]+\.?\d*)",
            r"\$([\d,]+\.?\d*)\s*(?:Total|Ending|Closing)",
        ),
        flags=re.IGNORECASE,
    ),
    "opening_balance": FieldRule(
        aliases=("openingBalance", "opening_balance", "beginningBalance", "beginning_balance"),
        patterns=(r"(?:Opening|Beginning)\s+balance[:\s]*\$?([\d,]+\.?\d*)",),
        flags=re.IGNORECASE,
    ),
    "total_deposits": FieldRule(
        aliases=("totalDeposits", "total_deposits", "deposits"),
    ),
    "total_withdrawals": FieldRule(
        aliases=("totalWithdrawals", "total_withdrawals", "withdrawals"),
    ),
    "statement_period": FieldRule(
        aliases=("statementPeriod", "statement_period", "statementDate", "statement_date", "period"),
    ),
    "currency": FieldRule(aliases=("currency", "currencyCode", "currency_code")),
    "account_number": FieldRule(aliases=("accountNumber", "account_number")),
    # Sponsor name: labelled line, then a line-start "Firstname Lastname",
    # then the common-surname heuristic as the last resort.
    "sponsor_name": FieldRule(
        aliases=("accountHolderName", "account_holder_name", "ownerName", "owner_name"),
        patterns=(
            r"(?:Customer service information|Account Holder|Name)[:\s]*\n?([A-Z][a-z]+\s+[A-Z][a-z]+)",
            r"^([A-Z][a-z]+\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)",
            rf"([A-Z][a-z]+\s+(?:{COMMON_SURNAMES}))",
        ),
        flags=re.MULTILINE,
    ),
    "account_holder": FieldRule(
        aliases=("accountHolderName", "account_holder_name", "accountHolder", "account_holder"),
        patterns=(
            r"(?:Your|Account Holder|Name)[:\s]*\n?([A-Z][A-Z\s]+[A-Z])",
            rf"^([A-Z][A-Z\s]+(?:{COMMON_SURNAMES}))",
        ),
        flags=re.MULTILINE,
    ),
    "bank_name": FieldRule(
        aliases=("bankName", "bank_name", "bank", "institutionName", "institution_name"),
        patterns=(
            rf"({KNOWN_BANKS})",
            r"([A-Z][A-Z\s&]+(?:BANK|BANCO|BANCO DE|NATIONAL|FEDERAL|CREDIT UNION))",
        ),
        flags=re.IGNORECASE,
    ),
    "owner_name": FieldRule(
        aliases=("ownerName", "owner_name", "accountHolderName", "account_holder_name", "name"),
    ),
    "asset_type": FieldRule(aliases=("assetType", "asset_type", "type")),
    "asset_value": FieldRule(aliases=("assetValue", "asset_value", "value", "propertyValue", "property_value")),
    "asset_description": FieldRule(aliases=("assetDescription", "asset_description", "description")),
    # Person fields shared by passports, I-94s and I-20s
    "person_name": FieldRule(
        aliases=(
            "name", ("first_name", "last_name"), ("firstName", "lastName"),
            "studentName", "student_name", "fullName", "full_name",
        ),
    ),
    "date_of_birth": FieldRule(
        aliases=("dateOfBirth", "birthDate", "birth_date", "date_of_birth"),
    ),
    "country_of_birth": FieldRule(
        aliases=("placeOfBirth", "place_of_birth", "countryOfBirth", "country_of_birth"),
    ),
    "relationship": FieldRule(aliases=("relationship", "relationshipType", "relationship_type")),
    "nationality": FieldRule(
        aliases=("nationality", "country_of_citizenship", "countryOfCitizenship"),
    ),
    "gender": FieldRule(aliases=("gender", "sex")),
    "passport_number": FieldRule(aliases=("passportNumber", "passport_number", "document_number")),
    "issue_date": FieldRule(aliases=("issueDate", "issue_date")),
    "expiry_date": FieldRule(aliases=("expiryDate", "expiry_date", "expirationDate", "expiration_date")),
    "admission_number": FieldRule(aliases=("admissionNumber", "i_94_number", "admitNumber", "admission_number")),
    "class_of_admission": FieldRule(aliases=("classOfAdmission", "current_visa_type", "admissionClass", "class_of_admission")),
    "date_of_admission": FieldRule(aliases=("dateOfAdmission", "entry_date", "admissionDate", "date_of_admission")),
    "admit_until_date": FieldRule(aliases=("admitUntilDate", "i_94_expiry_date", "admitUntil", "expirationDate")),
    "student_name": FieldRule(aliases=("studentName", "student_name")),
    "sevis_id": FieldRule(aliases=("sevisId", "sevis_id")),
    "school_name": FieldRule(aliases=("schoolName", "school_name")),
    "program_of_study": FieldRule(aliases=("programOfStudy", "program_of_study")),
    "program_level": FieldRule(aliases=("programLevel", "program_level")),
    "major_field": FieldRule(aliases=("majorField", "major_field")),
    "start_date": FieldRule(aliases=("startDate", "start_date", "programStartDate")),
    "end_date": FieldRule(aliases=("endDate", "end_date", "programEndDate")),
    "country_of_citizenship": FieldRule(aliases=("countryOfCitizenship", "country_of_citizenship")),
    # Ties-to-country evidence
    "family_member_name": FieldRule(aliases=("familyMemberName", "family_member_name")),
    "relationship_type": FieldRule(aliases=("relationshipType", "relationship_type")),
    "property_address": FieldRule(aliases=("propertyAddress", "property_address")),
    "property_value": FieldRule(aliases=("propertyValue", "property_value")),
    "employment_company": FieldRule(aliases=("employmentCompany", "employment_company", "employer")),
    "employment_position": FieldRule(aliases=("employmentPosition", "employment_position", "position")),
    "document_type": FieldRule(aliases=("documentType", "document_type")),
    # Scholarship and other funding
    "scholarship_name": FieldRule(aliases=("scholarshipName", "scholarship_name", "institutionName")),
    "award_amount": FieldRule(aliases=("awardAmount", "award_amount", "assetValue")),
    "institution_name": FieldRule(aliases=("institutionName", "institution_name", "bankName")),
    "document_date": FieldRule(aliases=("documentDate", "document_date")),
    "funding_source": FieldRule(aliases=("fundingSource", "funding_source", "assetDescription")),
    "funding_amount": FieldRule(aliases=("amount", "assetValue")),
}


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class FieldAliasResolver:
    """Resolve logical fields against an untyped field bag.

    Structured aliases are tried first; the raw-text patterns only run when
    every alias is absent.
    """

    def __init__(self, rules: Optional[Mapping[str, FieldRule]] = None):
        self.rules = dict(rules or FIELD_RULES)

    def rule(self, logical_field: str) -> FieldRule:
        try:
            return self.rules[logical_field]
        except KeyError:
            raise KeyError(f"Unknown logical field: {logical_field}") from None

    def resolve_structured(self, logical_field: str, fields: Mapping[str, Any]) -> Optional[str]:
        for candidate in self.rule(logical_field).aliases:
            if isinstance(candidate, tuple):
                parts = [_as_text(fields.get(key)) for key in candidate]
                if all(parts):
                    return " ".join(parts)
                continue
            value = _as_text(fields.get(candidate))
            if value:
                return value
        return None

    def resolve_from_text(self, logical_field: str, raw_text: Optional[str]) -> Optional[str]:
        if not raw_text:
            return None
        for pattern in self.rule(logical_field).compiled:
            match = pattern.search(raw_text)
            if match:
                value = match.group(1).strip()
                if value:
                    LOGGER.debug(
                        f"Resolved {logical_field} from raw text",
                        extra={"logical_field": logical_field, "pattern": pattern.pattern},
                    )
                    return value
        return None

    def resolve(self, logical_field: str, fields: Optional[Mapping[str, Any]]) -> Optional[str]:
        """Resolve a logical field, falling back to ``rawText`` patterns.

        Args:
            logical_field: Key into the rule table
            fields: Extracted field bag (may contain ``rawText``)

        Returns:
            The first non-empty value found, or None
        """
        if not fields:
            return None
        value = self.resolve_structured(logical_field, fields)
        if value:
            return value
        raw_text = fields.get("rawText")
        return self.resolve_from_text(logical_field, raw_text if isinstance(raw_text, str) else None)

    def resolve_many(self, logical_fields: Sequence[str], fields: Optional[Mapping[str, Any]]) -> Dict[str, Optional[str]]:
        return {name: self.resolve(name, fields) for name in logical_fields}


default_resolver = FieldAliasResolver()
