"""Lenient date parsing for OCR output and letter context values."""

from datetime import date, datetime
from typing import Optional

from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Tried in order; US month/day ordering wins over day/month for slashed dates.
DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%d-%b-%Y",
    "%d %b %y",
    "%Y%m%d",
]


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a date string in any of the supported formats.

    Args:
        value: Raw date text such as ``2024-03-15``, ``03/15/2024`` or ``March 15, 2024``

    Returns:
        Parsed date, or None when no format matches
    """
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1]
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    LOGGER.debug(f"Unparsable date: {text}")
    return None


def format_long_date(value: Optional[str]) -> str:
    """Format as ``Month D, YYYY``; unparsable input is returned unchanged."""
    if not value:
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return long_date(parsed)


def long_date(value: date) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_uscis_date(value: Optional[str]) -> str:
    """Format as ``mm/dd/yyyy`` for USCIS forms; unparsable input is returned unchanged."""
    if not value:
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%m/%d/%Y")
