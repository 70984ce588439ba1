"""Detection and extraction of the structured financial summary paragraph."""

import re
from typing import List, Optional, Sequence

from visa_assistant.schemas.layout import AvailableResources, FinancialData, FinancialRequirements
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

FINANCIAL_KEYWORDS = ("financial requirements", "available financial resources")

FINANCIAL_LINE_PATTERN = re.compile(
    r"^(financial requirements:|available financial resources:|tuition:|living expenses:"
    r"|total required:|personal funds:|personal\s+financial\s+funds:|financial\s+sponsorship\s+by"
    r"|financial\s+sponsorship:|sponsor:|total available:)",
    re.IGNORECASE,
)
_TRAILING_NOTE = re.compile(r"\s*\([^)]*\)\s*$")
_BULLET = re.compile(r"^[-*]\s*")

# Each entry is tried in order; the USD-prefixed form wins over the bare one.
TUITION_PATTERNS = [
    r"tuition[:\s]*usd\s*\$?([\d,]+)",
    r"tuition[:\s]*\$?([\d,]+)",
]
LIVING_EXPENSES_PATTERNS = [
    r"living\s+expenses[:\s]*usd\s*\$?([\d,]+)",
    r"living\s+expenses[:\s]*\$?([\d,]+)",
]
TOTAL_REQUIRED_PATTERNS = [
    r"total\s+required[:\s]*usd\s*\$?([\d,]+)",
    r"total\s+required[:\s]*\$?([\d,]+)",
]
PERSONAL_FUNDS_PATTERNS = [
    r"personal\s+(?:financial\s+)?funds[:\s]*usd\s*\$?([\d,.]+)",
    r"personal\s+(?:financial\s+)?funds[:\s]*\$?([\d,.]+)",
]
SPONSOR_PATTERNS = [
    r"financial\s+sponsorship\s+by\s+([^:]+):\s*usd\s*\$?([\d,.]+)",
    r"financial\s+sponsorship\s*:\s*([^:]+):\s*usd\s*\$?([\d,.]+)",
    r"sponsor[:\s]*([^:]+)[:\s]*usd\s*\$?([\d,.]+)",
]
TOTAL_AVAILABLE_PATTERNS = [
    r"total\s+available[:\s]*usd\s*\$?([\d,.]+)",
    r"total\s+available[:\s]*\$?([\d,.]+)",
]

# Placeholder sponsor names the context mapper emits when there is no sponsor
NO_SPONSOR_NAMES = {"n/a", "none"}


def _lines(paragraph: str) -> List[str]:
    return [line.strip() for line in paragraph.split("\n") if line.strip()]


def is_financial_section(paragraph: str) -> bool:
    """Whether a paragraph is the structured financial summary block.

    The paragraph must mention the financial keywords, carry structured
    amounts, and consist only of financial lines.
    """
    text = paragraph.lower()
    if not any(keyword in text for keyword in FINANCIAL_KEYWORDS):
        return False
    if "usd $" not in text and not ("tuition:" in text and "living expenses:" in text):
        return False
    lines = _lines(paragraph)
    if not lines:
        return False
    for line in lines:
        normalized = _BULLET.sub("", _TRAILING_NOTE.sub("", line)).strip()
        if not FINANCIAL_LINE_PATTERN.match(normalized):
            return False
    return True


def _search(patterns: Sequence[str], paragraph: str) -> Optional["re.Match[str]"]:
    for pattern in patterns:
        match = re.search(pattern, paragraph, re.IGNORECASE)
        if match:
            return match
    return None


def _group(patterns: Sequence[str], paragraph: str) -> Optional[str]:
    match = _search(patterns, paragraph)
    return match.group(1) if match else None


def extract_financial_data(paragraph: str) -> Optional[FinancialData]:
    """Extract the financial summary from a paragraph.

    Amounts are returned as the digits and separators found after ``USD $``,
    for example ``12,346``.

    Args:
        paragraph: One paragraph of the assembled letter

    Returns:
        The financial block, or None when the paragraph is not one
    """
    if not is_financial_section(paragraph):
        return None

    requirements = FinancialRequirements(
        tuition=_group(TUITION_PATTERNS, paragraph),
        living_expenses=_group(LIVING_EXPENSES_PATTERNS, paragraph),
        total_required=_group(TOTAL_REQUIRED_PATTERNS, paragraph),
    )
    resources = AvailableResources(
        personal_funds=_group(PERSONAL_FUNDS_PATTERNS, paragraph),
        total_available=_group(TOTAL_AVAILABLE_PATTERNS, paragraph),
    )
    sponsor = _search(SPONSOR_PATTERNS, paragraph)
    if sponsor:
        name = sponsor.group(1).strip()
        if name.lower() not in NO_SPONSOR_NAMES:
            resources.sponsor_name = name
            resources.sponsor_amount = sponsor.group(2)

    data = FinancialData(financial_requirements=requirements, available_resources=resources)
    LOGGER.debug(
        "Extracted financial block",
        extra={"has_sponsor": resources.sponsor_name is not None, "has_values": data.has_values},
    )
    return data
