"""Map aggregated application data onto the flat I-539 cover letter context."""

from datetime import date
from typing import Any, Dict, Optional

from visa_assistant.schemas.aggregation import AggregatedApplicationData
from visa_assistant.schemas.application import FinancialSupport
from visa_assistant.services.letters.legal_citations import CFR_214_2_F, CFR_248_1, format_legal_basis
from visa_assistant.services.letters.nationality import (
    get_citizenship_adjective,
    get_country_name,
    sanitize_nationality,
)
from visa_assistant.utils.dates import format_long_date, long_date
from visa_assistant.utils.money import format_usd, sum_amounts

USCIS_ADDRESS = (
    "U.S. Citizenship and Immigration Services",
    "P.O. Box 805887",
    "Chicago, IL 60680-4120",
)

REQUESTED_STATUS = "F-1"
DEFAULT_CURRENT_STATUS = "B-2"
STATUS_ALIASES = {"B1": "B-1", "WB": "B-1", "B2": "B-2", "WT": "B-2"}
STATUS_DESCRIPTIONS = {
    "B-1": "Business Visitor",
    "B-2": "Visitor",
    "B1": "Business Visitor",
    "B2": "Visitor",
    "WB": "Business Visitor",
    "WT": "Visitor",
}

INA_SECTION = "248"
CFR_SECTION = CFR_248_1
INTENT_CFR_REFERENCE = CFR_214_2_F
FINANCIAL_CFR_REFERENCE = "8 C.F.R. Section 214.2(f)(1)(i)(B)"
TUITION_COVERAGE_PERIOD = "first 12 months"

# Keys an I-20 extraction uses for the school's cost estimate
TUITION_KEYS = ("annual_tuition_amount", "annualTuitionAmount", "tuition", "estimatedTuition")
LIVING_KEYS = ("annual_living_expenses", "annualLivingExpenses", "living_expenses", "livingExpenses")
TOTAL_COST_KEYS = ("total_annual_cost", "totalAnnualCost", "total_expenses", "totalExpenses")

SPOUSE_MARKERS = ("spouse", "wife", "husband")


def normalize_current_status(class_of_admission: str) -> str:
    """Map an I-94 class of admission to the status named in the letter."""
    if not class_of_admission:
        return DEFAULT_CURRENT_STATUS
    return STATUS_ALIASES.get(class_of_admission, class_of_admission)


def _title(gender: Optional[str]) -> str:
    code = (gender or "").strip().upper()[:1]
    return {"M": "Mr.", "F": "Ms."}.get(code, "")


def _first_amount(extracted: Dict[str, Any], keys) -> str:
    for key in keys:
        value = extracted.get(key)
        if value not in (None, ""):
            return format_usd(str(value))
    return ""


def _dependent_introduction(data: AggregatedApplicationData) -> str:
    block = data.form_data.dependents
    if not block or not block.has_dependents or not block.dependents:
        return " No dependents are included in this request."
    spouse = next(
        (d for d in block.dependents if any(m in d.relationship.lower() for m in SPOUSE_MARKERS)),
        None,
    )
    if spouse is not None:
        return (
            f" The Applicant's spouse, {spouse.full_name.upper()}, the Dependent, concurrently requests "
            "a change of status to F-2 (Dependent Spouse of Student)."
        )
    first = block.dependents[0]
    return f" The Dependent, {first.full_name.upper()}, concurrently requests a change of status to F-2."


def _ties_summary(data: AggregatedApplicationData) -> str:
    ties = data.form_data.ties_to_country
    if not ties:
        return ""
    answers = [a.strip() for a in (ties.question1, ties.question2, ties.question3) if a and a.strip()]
    return " ".join(answers)


def map_to_i539_context(data: AggregatedApplicationData, today: Optional[date] = None) -> Dict[str, str]:
    """Build the flat placeholder context for the I-539 cover letter templates.

    Values that cannot be derived are left as empty strings so the renderer
    keeps their placeholders visible.

    Args:
        data: Aggregated application view
        today: Letter date; defaults to the current date

    Returns:
        Mapping of placeholder name to value
    """
    documents = data.documents
    address = data.application.current_address
    support = data.form_data.financial_support or FinancialSupport()
    passport = documents.passport
    i94 = documents.i94
    i20 = documents.i20

    city_state_zip = ", ".join(
        part for part in (
            address.city if address else "",
            address.state if address else "",
            address.zip_code if address else "",
        ) if part
    )

    class_of_admission = ((i94.class_of_admission if i94 else None) or "").upper()
    current_status = normalize_current_status(class_of_admission)

    raw_nationality = (passport.nationality if passport else None) or data.application.country or ""
    home_country = sanitize_nationality(raw_nationality) or raw_nationality
    country_name = get_country_name(raw_nationality)

    signatory_name = (
        (passport.name if passport else None)
        or (i94.name if i94 else None)
        or (i20.student_name if i20 else None)
        or data.user.full_name
        or "Applicant"
    )

    sponsor_amount = support.sponsor_amount or data.sponsor_summary.total_balance
    sponsor_name = support.sponsor_name or data.sponsor_summary.sponsor_name
    total_funds = sum_amounts(support.savings_amount, sponsor_amount)
    extracted_i20 = i20.extracted_data if i20 else {}

    return {
        "applicant_address_line1": address.street if address else "",
        "applicant_address_line2": "",
        "applicant_city_state_zip": city_state_zip,
        "date": long_date(today or date.today()),
        "uscis_address_line1": USCIS_ADDRESS[0],
        "uscis_address_line2": USCIS_ADDRESS[1],
        "uscis_address_line3": USCIS_ADDRESS[2],
        "applicant_title": _title(passport.gender if passport else None),
        "applicant_full_name": signatory_name,
        "applicant_full_name_uppercase": signatory_name.upper(),
        "current_status_description": (
            STATUS_DESCRIPTIONS.get(class_of_admission)
            or STATUS_DESCRIPTIONS.get(current_status)
            or "Visitor"
        ),
        "requested_status_description": "Academic Student",
        "dependent_introduction": _dependent_introduction(data),
        "entry_date": format_long_date(i94.date_of_admission if i94 else None),
        "current_status": current_status,
        "requested_status": REQUESTED_STATUS,
        "home_country": home_country,
        "home_country_name": country_name,
        "citizenship_adjective": get_citizenship_adjective(country_name),
        "ina_section": INA_SECTION,
        "cfr_section": CFR_SECTION,
        "maintenance_cfr_reference": CFR_SECTION,
        "intent_cfr_reference": INTENT_CFR_REFERENCE,
        "financial_cfr_reference": FINANCIAL_CFR_REFERENCE,
        "legal_basis": format_legal_basis(),
        "school_name": (i20.school_name if i20 else None) or "",
        "program_of_study": (i20.program_of_study if i20 else None) or "",
        "sevis_id": (i20.sevis_id if i20 else None) or "",
        "ties_summary": _ties_summary(data),
        "tuition_usd": _first_amount(extracted_i20, TUITION_KEYS),
        "living_expenses_usd": _first_amount(extracted_i20, LIVING_KEYS),
        "total_required_usd": _first_amount(extracted_i20, TOTAL_COST_KEYS),
        "personal_funds_usd": format_usd(support.savings_amount),
        "sponsor_name": sponsor_name or "",
        "sponsor_display_name": sponsor_name or "N/A",
        "sponsor_funds_usd": format_usd(sponsor_amount),
        "total_funds_usd": format_usd(str(total_funds)) if total_funds else "USD $0",
        "tuition_coverage_period": TUITION_COVERAGE_PERIOD,
        "signatory_name": signatory_name,
        "signatory_title": "",
        "organization_name": "",
    }
