"""Rendering targets: combined PDF, I-539 form fill, fill guide and DOCX package."""

from visa_assistant.services.rendering.backend import RenderingBackend, init_rendering
from visa_assistant.services.rendering.combined_pdf import CombinedPdfRenderer
from visa_assistant.services.rendering.form_fill import FormFillResult, I539FormFiller, find_field, parse_full_name
from visa_assistant.services.rendering.sanitize import remove_problematic_symbols, sanitize_for_pdf

__all__ = [
    "CombinedPdfRenderer",
    "FormFillResult",
    "I539FormFiller",
    "RenderingBackend",
    "find_field",
    "init_rendering",
    "parse_full_name",
    "remove_problematic_symbols",
    "sanitize_for_pdf",
]
