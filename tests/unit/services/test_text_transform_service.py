"""Unit tests for rewriting a selected passage of a letter."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from visa_assistant.core.config import LLMSettings
from visa_assistant.core.exceptions import (
    ConfigurationError,
    UnauthorizedError,
    UpstreamServiceError,
    ValidationError,
)
from visa_assistant.database.models import Application
from visa_assistant.schemas.transform import TransformCommand
from visa_assistant.services.ai.text_transform_service import (
    MAX_SELECTION_LENGTH,
    PROMPT_BASE,
    TextTransformService,
    build_system_prompt,
)
from visa_assistant.services.ai.ties_answer_service import ChatCompletionsClient

SELECTION = "I want go to United States for study english."


def _completion(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def llm_client() -> ChatCompletionsClient:
    client = ChatCompletionsClient(LLMSettings(LLM_API_KEY="test-key"), timeout=5)
    client.call_api = AsyncMock()
    return client


@pytest.fixture
def application(current_user) -> Application:
    return Application(id=uuid4(), user_id=current_user.id, form_data={})


@pytest.fixture
def app_repo(application):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=application)
    return repo


class TestBuildSystemPrompt:

    @pytest.mark.parametrize(
        "command, phrase",
        [
            (TransformCommand.REWRITE, "preserving its original meaning"),
            (TransformCommand.FORMAL, "formal tone"),
            (TransformCommand.USCIS, "submitted to USCIS"),
            (TransformCommand.SIMPLIFY, "easier to understand"),
        ],
    )
    def test_each_command_has_its_instruction(self, command, phrase):
        prompt = build_system_prompt(command)

        assert prompt.startswith(PROMPT_BASE)
        assert phrase in prompt


class TestTextTransformService:

    @pytest.mark.asyncio
    async def test_selection_is_rewritten(self, app_repo, application, llm_client, current_user):
        llm_client.call_api.return_value = _completion("  I intend to travel to the United States to study English.\n")

        text = await TextTransformService(app_repo, llm_client).transform(
            application.id, SELECTION, TransformCommand.USCIS, current_user
        )

        assert text == "I intend to travel to the United States to study English."
        payload = llm_client.call_api.call_args.kwargs["payload"]
        assert payload["temperature"] == 0.4
        assert "response_format" not in payload
        assert payload["messages"][0]["content"] == build_system_prompt(TransformCommand.USCIS)
        assert payload["messages"][1]["content"] == f"Selected text:\n\n{SELECTION}"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", None])
    async def test_empty_reply(self, app_repo, application, llm_client, current_user, content):
        llm_client.call_api.return_value = _completion(content)

        with pytest.raises(UpstreamServiceError, match="Invalid response"):
            await TextTransformService(app_repo, llm_client).transform(
                application.id, SELECTION, TransformCommand.REWRITE, current_user
            )

    @pytest.mark.asyncio
    async def test_upstream_error_keeps_provider_message(self, app_repo, application, llm_client, current_user):
        llm_client.call_api.side_effect = UpstreamServiceError(
            "llm request failed with status 429", service="llm", upstream_message="Rate limit reached"
        )

        with pytest.raises(UpstreamServiceError) as exc_info:
            await TextTransformService(app_repo, llm_client).transform(
                application.id, SELECTION, TransformCommand.FORMAL, current_user
            )
        assert exc_info.value.upstream_message == "Rate limit reached"

    @pytest.mark.asyncio
    async def test_unconfigured_client_is_rejected(self, app_repo, application, current_user):
        client = MagicMock(configured=False)

        with pytest.raises(ConfigurationError):
            await TextTransformService(app_repo, client).transform(
                application.id, SELECTION, TransformCommand.REWRITE, current_user
            )
        client.complete_text.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "x" * (MAX_SELECTION_LENGTH + 1)])
    async def test_invalid_selection(self, app_repo, application, llm_client, current_user, text):
        with pytest.raises(ValidationError):
            await TextTransformService(app_repo, llm_client).transform(
                application.id, text, TransformCommand.REWRITE, current_user
            )
        llm_client.call_api.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_users_application(self, app_repo, application, llm_client, other_user):
        with pytest.raises(UnauthorizedError):
            await TextTransformService(app_repo, llm_client).transform(
                application.id, SELECTION, TransformCommand.REWRITE, other_user
            )
        llm_client.call_api.assert_not_called()
