"""Reasoning collaborators that analyze captured frames."""

from services.reasoning.http_client import HttpReasoningClient
from services.reasoning.openai_service import OpenAIVisionClient, build_prompt, build_reasoning_client
from services.reasoning.service import (
    NullReasoningClient,
    ReasoningClient,
    ReasoningError,
    detection_summary,
)

__all__ = [
    "HttpReasoningClient",
    "NullReasoningClient",
    "OpenAIVisionClient",
    "ReasoningClient",
    "ReasoningError",
    "build_prompt",
    "build_reasoning_client",
    "detection_summary",
]
