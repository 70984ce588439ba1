"""Nationality wording for formal USCIS correspondence."""

from typing import Dict, Optional

BRAZIL_MARKERS = ("brasil", "brasileir")

COUNTRY_NAMES: Dict[str, str] = {
    "brasil": "Brazil",
    "brasileiro": "Brazil",
    "brasileira": "Brazil",
    "brasileiro(a)": "Brazil",
    "brasileiro (a)": "Brazil",
    "brasileiro/a": "Brazil",
    "brasileiro/brasileira": "Brazil",
    "brazil": "Brazil",
    "brazilian": "Brazil",
}

CITIZENSHIP_ADJECTIVES: Dict[str, str] = {
    "brazil": "Brazilian",
    "united states": "American",
    "united states of america": "American",
    "usa": "American",
    "mexico": "Mexican",
    "canada": "Canadian",
    "argentina": "Argentine",
    "chile": "Chilean",
    "colombia": "Colombian",
    "peru": "Peruvian",
    "venezuela": "Venezuelan",
    "ecuador": "Ecuadorian",
}


def sanitize_nationality(raw: Optional[str]) -> str:
    """Render a nationality as ``a national of <Country>``.

    Portuguese forms (``BRASILEIRO(A)``, ``Brasil``) always become Brazil.
    """
    if not raw:
        return ""
    normalized = raw.lower()
    if any(marker in normalized for marker in BRAZIL_MARKERS):
        return "a national of Brazil"
    return f"a national of {raw}"


def get_country_name(nationality: Optional[str]) -> str:
    """English country name for a nationality string; never returns Portuguese terms."""
    if not nationality:
        return ""
    normalized = nationality.lower().strip()
    for key, country in COUNTRY_NAMES.items():
        if key in normalized:
            return country
    return nationality.capitalize() if normalized else nationality


def get_citizenship_adjective(country_name: Optional[str]) -> str:
    """``Brazil`` -> ``Brazilian``; unknown countries are just capitalized."""
    if not country_name:
        return ""
    return CITIZENSHIP_ADJECTIVES.get(country_name.lower(), country_name.capitalize())
