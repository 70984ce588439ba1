"""I-539 cover letter assembly from the ordered template collection."""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from visa_assistant.core.config import settings
from visa_assistant.core.exceptions import TemplateLoadError
from visa_assistant.services.letters.renderer import find_placeholders, render_template
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Later sections rely on facts established by earlier ones; order is fixed.
TEMPLATE_ORDER = [
    "00_header_re.md",
    "05_introduction.md",
    "10_case_background.md",
    "20_legal_basis.md",
    "30_maintenance_of_status.md",
    "40_nonimmigrant_intent.md",
    "50_strong_ties_home_country.md",
    "60_financial_capacity.md",
    "90_conclusion_request_for_approval.md",
    "99_signature_block.md",
]

SECTION_SEPARATOR = "\n\n"


class CoverLetterAssembler:
    """Loads the cover letter templates and renders them against a context.

    Attributes:
        template_dir: Directory holding the numbered ``.md`` templates
    """

    def __init__(self, template_dir: Optional[Union[str, Path]] = None):
        self.template_dir = Path(template_dir or settings.letters.template_dir)
        self._cache: Dict[str, str] = {}

    def load_template(self, name: str) -> str:
        """Read one template by file name.

        Raises:
            TemplateLoadError: If the file cannot be read
        """
        if name in self._cache:
            return self._cache[name]
        try:
            content = (self.template_dir / name).read_text(encoding="utf-8")
        except OSError as e:
            LOGGER.error(
                f"Failed to load template {name}: {e}",
                extra={"template_dir": str(self.template_dir)},
            )
            raise TemplateLoadError(f"Failed to load template {name}: {e}", original_error=e) from e
        self._cache[name] = content
        return content

    def render_sections(self, context: Mapping[str, Optional[str]]) -> List[str]:
        """Render every template in order, one string per section."""
        return [render_template(self.load_template(name), context) for name in TEMPLATE_ORDER]

    def assemble(self, context: Mapping[str, Optional[str]]) -> str:
        """Render and join all sections with a blank line, trimming the result."""
        letter = SECTION_SEPARATOR.join(self.render_sections(context)).strip()
        unresolved = find_placeholders(letter)
        if unresolved:
            LOGGER.warning(
                f"Assembled cover letter with {len(unresolved)} unresolved placeholders",
                extra={"placeholders": unresolved},
            )
        else:
            LOGGER.info("Assembled cover letter", extra={"length": len(letter)})
        return letter


def assemble(context: Mapping[str, Optional[str]], template_dir: Optional[Union[str, Path]] = None) -> str:
    """Assemble the I-539 cover letter from the configured template directory."""
    return CoverLetterAssembler(template_dir).assemble(context)
