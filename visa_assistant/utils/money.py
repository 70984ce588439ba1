"""Monetary string parsing and formatting helpers."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_amount(value: Any) -> Optional[Decimal]:
    """Parse a loosely formatted monetary value.

    Thousands separators and any non-numeric characters are stripped before
    parsing. Unparsable and non-positive results count as "not found".

    Args:
        value: Raw value such as ``"$12,345.67"``, ``"1000"`` or ``2500.5``

    Returns:
        Positive Decimal amount, or None
    """
    if value is None or isinstance(value, bool):
        return None
    cleaned = _NON_NUMERIC.sub("", str(value).replace(",", ""))
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def format_decimal(amount: Decimal) -> str:
    """Format with exactly two decimals, e.g. ``3500.50``."""
    return str(amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_usd(amount: Optional[str]) -> str:
    """Format a stored amount as ``USD $X,XXX`` rounded to whole dollars.

    Empty input renders as ``USD $0``; text that holds no number is passed
    through after the ``USD`` prefix so it stays visible to a reviewer.
    """
    if not amount:
        return "USD $0"
    cleaned = re.sub(r"[^\d.,]", "", str(amount)).replace(",", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return f"USD {amount}"
    whole = int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"USD ${whole:,}"


def sum_amounts(*amounts: Optional[str]) -> Optional[Decimal]:
    """Sum the parsable positive amounts, or None when none parse."""
    parsed = [p for p in (parse_amount(a) for a in amounts) if p is not None]
    if not parsed:
        return None
    return sum(parsed, Decimal("0"))
