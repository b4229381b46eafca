"""OpenAI vision-backed reasoning client and the provider factory."""

from __future__ import annotations

import base64
import json
import os
from typing import Any
from urllib import error, request

from core.logging import logger as LOGGER
from services.reasoning.http_client import HttpReasoningClient
from services.reasoning.service import (
    NullReasoningClient,
    ReasoningClient,
    ReasoningError,
    detection_summary,
)


OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def build_prompt(summary: str, custom_prompt: str | None = None) -> str:
    """Return the analysis prompt for a detection summary."""

    if custom_prompt:
        return f"{custom_prompt}\n\nDetected objects:\n{summary}"
    return (
        "Analyze this image and describe what you see. "
        "The image contains the following detected objects:\n\n"
        f"{summary}\n\n"
        "Please provide a detailed description of:\n"
        "1. What is displayed in the picture\n"
        "2. The context and scene\n"
        "3. Any notable details about the detected objects\n"
        "4. The overall composition and setting\n\n"
        "Be specific and descriptive."
    )


class OpenAIVisionClient(ReasoningClient):
    """Sends the capture and detection summary to a vision chat model."""

    def __init__(
        self,
        *,
        model: str = "gpt-4o",
        max_tokens: int = 500,
        timeout_s: float = 30.0,
        custom_prompt: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self._api_key = (api_key if api_key is not None else os.getenv("OPENAI_API_KEY", "")).strip()
        self._model = model
        self._max_tokens = max(1, int(max_tokens))
        self._timeout_s = max(5.0, float(timeout_s))
        self._custom_prompt = custom_prompt

    def analyze(self, image_jpeg: bytes, payload: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            LOGGER.warning("[REASONING] OPENAI_API_KEY missing; analysis unavailable.")
            raise ReasoningError("OPENAI_API_KEY not set")

        prompt = build_prompt(detection_summary(payload.get("detections") or []), self._custom_prompt)
        response_payload = self._chat_call(self._request_body(prompt, image_jpeg))

        choices = response_payload.get("choices") or []
        message = (choices[0].get("message") or {}) if choices else {}
        analysis = message.get("content") or "No analysis available"
        return {
            "analysis": analysis,
            "model": response_payload.get("model"),
            "usage": response_payload.get("usage"),
        }

    def _request_body(self, prompt: str, image_jpeg: bytes) -> dict[str, Any]:
        image_base64 = base64.b64encode(image_jpeg).decode("ascii")
        return {
            "model": self._model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/jpeg;base64,{image_base64}"},
                        },
                    ],
                }
            ],
            "max_tokens": self._max_tokens,
        }

    def _chat_call(self, body: dict[str, Any]) -> dict[str, Any]:
        http_request = request.Request(
            OPENAI_CHAT_COMPLETIONS_URL,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with request.urlopen(http_request, timeout=self._timeout_s) as response:
                raw = response.read().decode("utf-8")
        except error.HTTPError as exc:
            details = exc.read().decode("utf-8", errors="replace")
            raise ReasoningError("OpenAI API request failed", status=exc.code, details=details) from exc
        except error.URLError as exc:
            raise ReasoningError(f"Network error: {exc.reason}") from exc
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ReasoningError("OpenAI API returned non-JSON response") from exc


def build_reasoning_client(config: dict[str, Any]) -> ReasoningClient:
    """Construct the configured reasoning client; unknown providers get the null client."""

    reasoning_cfg = config.get("reasoning") or {}
    provider = str(reasoning_cfg.get("provider", "null")).strip().lower()
    timeout_s = float(reasoning_cfg.get("timeout_s", 30.0))

    if provider == "http":
        http_cfg = reasoning_cfg.get("http") or {}
        return HttpReasoningClient(
            base_url=str(http_cfg.get("base_url", "http://localhost:3001")),
            timeout_s=timeout_s,
        )
    if provider == "openai":
        openai_cfg = reasoning_cfg.get("openai") or {}
        return OpenAIVisionClient(
            model=str(openai_cfg.get("model", "gpt-4o")),
            max_tokens=int(openai_cfg.get("max_tokens", 500)),
            timeout_s=timeout_s,
            custom_prompt=openai_cfg.get("prompt") or None,
        )
    if provider not in {"null", "none", ""}:
        LOGGER.warning("[REASONING] Unknown provider %r; using null client.", provider)
    return NullReasoningClient()
