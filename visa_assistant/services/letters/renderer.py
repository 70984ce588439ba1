"""Placeholder substitution for letter templates."""

import re
from typing import List, Mapping, Optional

PLACEHOLDER_PATTERN = re.compile(r"\{\{(.*?)\}\}")


def render_template(template: str, context: Mapping[str, Optional[str]]) -> str:
    """Substitute ``{{key}}`` tokens in a single pass.

    Keys are matched after stripping surrounding whitespace. A key missing
    from the context, or mapped to None or an empty string, keeps its literal
    placeholder so a reviewer can see what is missing.

    Args:
        template: Template body
        context: Flat placeholder values

    Returns:
        Rendered text
    """
    def _substitute(match: "re.Match[str]") -> str:
        value = context.get(match.group(1).strip())
        if value is None or value == "":
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(_substitute, template)


def find_placeholders(text: str) -> List[str]:
    """List placeholder keys still present in rendered text, in order of appearance."""
    seen = []
    for match in PLACEHOLDER_PATTERN.finditer(text):
        key = match.group(1).strip()
        if key not in seen:
            seen.append(key)
    return seen
