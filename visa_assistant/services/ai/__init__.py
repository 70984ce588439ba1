"""AI text generation services."""

from visa_assistant.services.ai.ties_answer_service import ChatCompletionsClient, TiesAnswerService

__all__ = ["ChatCompletionsClient", "TiesAnswerService"]
