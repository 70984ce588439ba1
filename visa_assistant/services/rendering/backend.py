"""Rendering backend wiring, created once at startup by ``init_rendering``."""

from dataclasses import dataclass
from typing import Optional

from visa_assistant.core.config import Settings
from visa_assistant.services.layout.pagination import PageBudgets
from visa_assistant.services.rendering.combined_pdf import CombinedPdfRenderer
from visa_assistant.services.rendering.docx_export import DocxPackageBuilder
from visa_assistant.services.rendering.form_fill import I539FormFiller
from visa_assistant.services.rendering.form_source import FormSource
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class RenderingBackend:
    """Renderers shared by every request; holds no per-request state."""

    combined_pdf: CombinedPdfRenderer
    form_filler: I539FormFiller
    docx: DocxPackageBuilder
    budgets: PageBudgets


def init_rendering(app_settings: Settings, form_source: Optional[FormSource] = None) -> RenderingBackend:
    """Build the rendering backend from settings.

    Args:
        app_settings: Application settings
        form_source: Override for the I-539 source chain, mainly for tests

    Returns:
        Backend to inject into services
    """
    source = form_source or FormSource(app_settings.forms, timeout=app_settings.http_timeout)
    backend = RenderingBackend(
        combined_pdf=CombinedPdfRenderer(),
        form_filler=I539FormFiller(source),
        docx=DocxPackageBuilder(),
        budgets=PageBudgets.from_settings(app_settings.letters),
    )
    LOGGER.info(
        "Rendering backend initialized",
        extra={
            "has_pdfrest_key": bool(app_settings.forms.pdfrest_api_key),
            "has_acroform_url": bool(app_settings.forms.acroform_url),
        },
    )
    return backend
