"""Text sanitation for PDF core fonts (Latin-1 / WinAnsi)."""

import re
import unicodedata
from typing import Dict, Optional

GREEK_MAP: Dict[str, str] = {
    "Α": "A", "α": "a", "Β": "B", "β": "b", "Γ": "G", "γ": "g",
    "Δ": "D", "δ": "d", "Ε": "E", "ε": "e", "Ζ": "Z", "ζ": "z",
    "Η": "H", "η": "h", "Θ": "Th", "θ": "th", "Ι": "I", "ι": "i",
    "Κ": "K", "κ": "k", "Λ": "L", "λ": "l", "Μ": "M", "μ": "m",
    "Ν": "N", "ν": "n", "Ξ": "X", "ξ": "x", "Ο": "O", "ο": "o",
    "Π": "P", "π": "p", "Ρ": "R", "ρ": "r", "Σ": "S", "σ": "s", "ς": "s",
    "Τ": "T", "τ": "t", "Υ": "Y", "υ": "y", "Φ": "Ph", "φ": "ph",
    "Χ": "Ch", "χ": "ch", "Ψ": "Ps", "ψ": "ps", "Ω": "O", "ω": "o",
}

SYMBOL_MAP: Dict[str, str] = {
    "–": "-",
    "—": "-",
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "…": "...",
    "§": "S",
    "©": "(c)",
    "®": "(R)",
    "™": "(TM)",
    "°": " degrees",
    "€": "EUR",
    "£": "GBP",
    "¥": "YEN",
    "\u00a0": " ",
    "\u2022": "",
}

UNICODE_MAP: Dict[str, str] = {**GREEK_MAP, **SYMBOL_MAP}

SOFT_HYPHEN = "\u00ad"

# Decorative runs that have no place in formal correspondence
_PROBLEMATIC_RUNS = [
    re.compile(r"\*{2,}"),
    re.compile(r"!{2,}"),
    re.compile(r"\?{2,}"),
    re.compile(r"[%&]{2,}"),
    re.compile(r"#{2,}"),
    re.compile(r"~{2,}"),
    re.compile(r"_{2,}"),
    re.compile(r"={2,}"),
    re.compile(r"-{2,}"),
    re.compile(r"[*!?#]{2,}"),
]
_HORIZONTAL_SPACE = re.compile(r"[ \t]+")


def remove_problematic_symbols(text: Optional[str]) -> str:
    """Drop repeated decorative symbols such as ``***``, ``!!``, ``%&`` or ``--``.

    Single occurrences are kept since they can be part of ordinary text.
    """
    if not text:
        return ""
    cleaned = text
    for pattern in _PROBLEMATIC_RUNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned


def _transliterate(char: str) -> str:
    if ord(char) < 128:
        return char
    mapped = UNICODE_MAP.get(char)
    if mapped is not None:
        return mapped
    stripped = "".join(c for c in unicodedata.normalize("NFD", char) if not unicodedata.combining(c))
    if stripped and all(ord(c) < 128 for c in stripped):
        return stripped
    code = ord(char)
    if 0xA0 <= code <= 0xFF:
        return "" if char == SOFT_HYPHEN else char
    return ""


def sanitize_for_pdf(text: Optional[str]) -> str:
    """Reduce text to characters the PDF core fonts can draw.

    Known characters are transliterated, accents are stripped, remaining
    Latin-1 characters are kept and everything else is dropped. Runs of
    spaces and tabs collapse to one space; newlines are preserved.
    """
    if not text:
        return ""
    cleaned = remove_problematic_symbols(text)
    cleaned = "".join(_transliterate(char) for char in cleaned)
    return _HORIZONTAL_SPACE.sub(" ", cleaned).strip()
