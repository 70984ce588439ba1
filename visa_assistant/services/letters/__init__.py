"""I-539 cover letter engine: context mapping, template assembly and validation."""

from visa_assistant.services.letters.assembler import TEMPLATE_ORDER, CoverLetterAssembler, assemble
from visa_assistant.services.letters.mapper import map_to_i539_context
from visa_assistant.services.letters.renderer import find_placeholders, render_template
from visa_assistant.services.letters.rules import LetterRuleValidator, ValidationResult, ensure_valid, validate

__all__ = [
    "TEMPLATE_ORDER",
    "CoverLetterAssembler",
    "LetterRuleValidator",
    "ValidationResult",
    "assemble",
    "ensure_valid",
    "find_placeholders",
    "map_to_i539_context",
    "render_template",
    "validate",
]
