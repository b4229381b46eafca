"""Reasoning client interface and null implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from core.logging import logger as LOGGER


class ReasoningError(RuntimeError):
    """Raised when the reasoning collaborator fails or rejects a request."""

    def __init__(self, message: str, *, status: int | None = None, details: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details


class ReasoningClient(ABC):
    """Interface for collaborators that analyze a captured frame."""

    @abstractmethod
    def analyze(self, image_jpeg: bytes, payload: dict[str, Any]) -> dict[str, Any]:
        """Return ``{"analysis": str, ...metadata}`` or raise ``ReasoningError``."""


class NullReasoningClient(ReasoningClient):
    """Safe default that performs no network activity."""

    def analyze(self, image_jpeg: bytes, payload: dict[str, Any]) -> dict[str, Any]:
        detections = payload.get("detections") or []
        LOGGER.info(
            "[REASONING] null client received %s bytes, %s detection(s)",
            len(image_jpeg),
            len(detections),
        )
        return {
            "analysis": "Reasoning disabled",
            "provider": "null",
            "detection_count": len(detections),
        }


def detection_summary(detections: list[dict[str, Any]]) -> str:
    """Return one human-readable line per detection."""

    lines = []
    for det in detections:
        score = float(det.get("score", 0.0))
        lines.append(
            f"{det.get('categoryName', 'unknown')} ({round(score * 100)}% confidence) "
            f"at position [{det.get('x')}, {det.get('y')}] "
            f"with size {det.get('width')}×{det.get('height')}"
        )
    return "\n".join(lines)
