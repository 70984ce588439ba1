"""Ties-to-country answer drafting with an OpenAI-compatible chat model."""

import json
from typing import Optional

from visa_assistant.core.config import LLMSettings, settings
from visa_assistant.core.exceptions import ConfigurationError, UpstreamServiceError
from visa_assistant.core.upstream_client import BaseUpstreamClient
from visa_assistant.schemas.application import TiesToCountry
from visa_assistant.schemas.ties import TiesSelections
from visa_assistant.services.base_service import BaseService
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a professional visa application assistant. Generate answers in SIMPLE, CLEAR "
    "English using basic vocabulary and short sentences. The applicant may not be fluent in "
    "English, so make your answers easy to understand for non-native speakers. Use everyday "
    "words, avoid complex terms, and keep sentences short."
)

USER_PROMPT = """You are helping a visa applicant write answers about their ties to their home country. The applicant may not be fluent in English, so use SIMPLE GRAMMAR and BASIC WORDS, but write detailed answers.

IMPORTANT INSTRUCTIONS:
- Use simple grammar (present tense, simple sentences)
- Use basic, everyday words (avoid complex vocabulary)
- Write at least 100 words for EACH answer
- Use short sentences (10-15 words each)
- State facts objectively, not emotions

Based on the following selections, generate detailed answers in SIMPLE ENGLISH:

Family Members Selected: {family}
Asset Types Selected: {assets}
Employment Types Selected: {employment}
Additional Information: {additional}

Question 1: Do you have family members (spouse, children, parents) in your home country?
Answer: [Who the family members are, where they live, and any dependency relationships. Use language like "My [family member] resides in [location]".]

Question 2: Do you own property or have financial assets in your home country?
Answer: [What is owned, where it is, its approximate value, and any management obligations. Use language like "I own [property type] in [location]".]

Question 3: Do you have employment or business commitments in your home country that require your return?
Answer: [The work or business, contractual obligations, and when the applicant needs to return.]

Format the response as JSON with three fields: question1, question2, question3."""


def build_prompt(selections: TiesSelections) -> str:
    return USER_PROMPT.format(
        family=", ".join(selections.family_members) or "None specified",
        assets=", ".join(selections.asset_types) or "None specified",
        employment=", ".join(selections.employment_types) or "None specified",
        additional=selections.additional_info or "None",
    )


class ChatCompletionsClient(BaseUpstreamClient):
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    service_name = "llm"

    def __init__(self, llm_settings: Optional[LLMSettings] = None, timeout: Optional[int] = None):
        llm_settings = llm_settings or settings.llm
        super().__init__(
            api_key=llm_settings.api_key,
            base_url=llm_settings.api_url,
            timeout=timeout or settings.http_timeout,
            max_retries=llm_settings.max_retries,
        )
        self.model = llm_settings.model
        self.temperature = llm_settings.temperature
        self.configured = bool(llm_settings.api_key)

    def _payload(self, system_prompt: str, user_prompt: str, temperature: Optional[float]) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature if temperature is None else temperature,
        }

    def _message_content(self, data: dict):
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamServiceError("Invalid response from AI service", service=self.service_name, original_error=e)

    async def complete_text(self, system_prompt: str, user_prompt: str, temperature: Optional[float] = None) -> str:
        """Request a plain-text completion.

        Raises:
            UpstreamServiceError: Request failed or the reply holds no text
        """
        data = await self.call_api(payload=self._payload(system_prompt, user_prompt, temperature))
        content = self._message_content(data)
        if not isinstance(content, str) or not content.strip():
            raise UpstreamServiceError("Invalid response from AI service", service=self.service_name)
        return content.strip()

    async def complete_json(self, system_prompt: str, user_prompt: str) -> dict:
        """Request a JSON-object completion and parse the message content.

        Raises:
            UpstreamServiceError: Request failed or content is not a JSON object
        """
        payload = self._payload(system_prompt, user_prompt, None)
        payload["response_format"] = {"type": "json_object"}
        content = self._message_content(await self.call_api(payload=payload))

        try:
            parsed = json.loads(content)
        except (TypeError, ValueError) as e:
            raise UpstreamServiceError("Failed to parse AI response", service=self.service_name, original_error=e)
        if not isinstance(parsed, dict):
            raise UpstreamServiceError("Failed to parse AI response", service=self.service_name)
        return parsed


class TiesAnswerService(BaseService):
    """Drafts the three ties-to-country answers from structured selections."""

    def __init__(self, client: Optional[ChatCompletionsClient] = None):
        super().__init__()
        self.client = client or ChatCompletionsClient()

    def validate(self, selections: TiesSelections):
        if not self.client.configured:
            raise ConfigurationError("AI service not configured. Set LLM_API_KEY.")

    async def run(self, selections: TiesSelections) -> TiesToCountry:
        content = await self.client.complete_json(SYSTEM_PROMPT, build_prompt(selections))
        answers = TiesToCountry(
            question1=str(content.get("question1") or ""),
            question2=str(content.get("question2") or ""),
            question3=str(content.get("question3") or ""),
        )
        LOGGER.info(
            "Generated ties answers",
            extra={
                "family_members": len(selections.family_members),
                "asset_types": len(selections.asset_types),
                "employment_types": len(selections.employment_types),
            },
        )
        return answers

    async def generate(self, selections: TiesSelections) -> TiesToCountry:
        return await self.execute(selections)
