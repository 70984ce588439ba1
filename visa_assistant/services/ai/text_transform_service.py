"""AI rewriting of text the applicant selected in a draft letter."""

from typing import Optional
from uuid import UUID

from visa_assistant.core.exceptions import ConfigurationError, ValidationError
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.schemas.auth import CurrentUser
from visa_assistant.schemas.transform import TransformCommand
from visa_assistant.services.ai.ties_answer_service import ChatCompletionsClient
from visa_assistant.services.base_service import BaseService
from visa_assistant.services.ownership import get_owned_application, require_user
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

TRANSFORM_TEMPERATURE = 0.4
MAX_SELECTION_LENGTH = 20000

PROMPT_BASE = (
    "You are assisting in the drafting of legal and immigration-related documents. "
    "Do not add new facts, assumptions, or legal claims. "
    "Only rewrite the provided text according to the instruction. "
    "Preserve the original intent and meaning at all times. "
    "Respond with ONLY the rewritten text, no explanations or quotes."
)

INSTRUCTIONS = {
    TransformCommand.REWRITE: (
        "Rewrite the selected text while preserving its original meaning. Use clear, professional, "
        "and well-structured prose. Do not add new facts or remove relevant details."
    ),
    TransformCommand.FORMAL: (
        "Rewrite the selected text using a formal tone appropriate for legal petitions and official "
        "correspondence. Maintain accuracy, clarity, and a professional legal writing style."
    ),
    TransformCommand.USCIS: (
        "Rewrite the selected text using clear, concise, and objective language suitable for U.S. "
        "immigration petitions submitted to USCIS. Maintain factual accuracy and avoid speculative "
        "or emotional language."
    ),
    TransformCommand.SIMPLIFY: (
        "Rewrite the selected text to make it easier to understand while preserving the original "
        "meaning. Use plain, clear language without reducing legal accuracy."
    ),
}


def build_system_prompt(command: TransformCommand) -> str:
    return f"{PROMPT_BASE}\n\n{INSTRUCTIONS[command]}"


class TextTransformService(BaseService):
    """Rewrites a selection in one of four registers for an owned application."""

    def __init__(
        self,
        application_repository: ApplicationRepository,
        client: Optional[ChatCompletionsClient] = None,
    ):
        super().__init__()
        self.application_repository = application_repository
        self.client = client or ChatCompletionsClient()

    def validate(self, application_id: UUID, text: str, command: TransformCommand, user: Optional[CurrentUser]):
        require_user(user)
        if not text or not text.strip():
            raise ValidationError("Text to transform is required")
        if len(text) > MAX_SELECTION_LENGTH:
            raise ValidationError(f"Selected text exceeds {MAX_SELECTION_LENGTH} characters")
        if not self.client.configured:
            raise ConfigurationError("AI service not configured. Set LLM_API_KEY.")

    async def run(self, application_id: UUID, text: str, command: TransformCommand, user: Optional[CurrentUser]) -> str:
        application = await get_owned_application(self.application_repository, application_id, user)
        rewritten = await self.client.complete_text(
            build_system_prompt(command),
            f"Selected text:\n\n{text}",
            temperature=TRANSFORM_TEMPERATURE,
        )
        LOGGER.info(
            f"Transformed selection with '{command.value}'",
            extra={"application_id": str(application.id), "input_length": len(text), "output_length": len(rewritten)},
        )
        return rewritten

    async def transform(
        self,
        application_id: UUID,
        text: str,
        command: TransformCommand,
        user: Optional[CurrentUser],
    ) -> str:
        """Rewrite ``text`` according to ``command``.

        Raises:
            UnauthenticatedError: No identity
            ValidationError: Empty or oversized selection
            ConfigurationError: No LLM key configured
            ApplicationNotFoundError: Unknown application id
            UnauthorizedError: Application owned by another identity
            UpstreamServiceError: The model call failed
        """
        return await self.execute(application_id, text, command, user)
