"""Schemas for AI rewriting of selected letter text."""

from enum import Enum

from pydantic import Field

from visa_assistant.schemas.application import CamelModel


class TransformCommand(str, Enum):
    REWRITE = "rewrite"
    FORMAL = "formal"
    USCIS = "uscis"
    SIMPLIFY = "simplify"


class TransformRequest(CamelModel):
    text: str = Field(..., min_length=1)
    command: TransformCommand = TransformCommand.REWRITE
