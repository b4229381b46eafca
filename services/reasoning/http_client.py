"""Client for a remote ``/api/analyze`` endpoint accepting multipart uploads."""

from __future__ import annotations

import json
from typing import Any
from urllib import error, request
import uuid

from core.logging import logger as LOGGER
from services.reasoning.service import ReasoningClient, ReasoningError
from storage.artifacts import file_stamp


def encode_multipart(fields: dict[str, str], files: dict[str, tuple[str, bytes, str]]) -> tuple[bytes, str]:
    """Return ``(body, content_type)`` for a multipart/form-data request."""

    boundary = f"----watchframe{uuid.uuid4().hex}"
    chunks: list[bytes] = []
    for name, value in fields.items():
        chunks.append(
            f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n'.encode("utf-8")
        )
        chunks.append(value.encode("utf-8"))
        chunks.append(b"\r\n")
    for name, (filename, content, mime_type) in files.items():
        chunks.append(
            (
                f'--{boundary}\r\nContent-Disposition: form-data; name="{name}"; '
                f'filename="{filename}"\r\nContent-Type: {mime_type}\r\n\r\n'
            ).encode("utf-8")
        )
        chunks.append(content)
        chunks.append(b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


class HttpReasoningClient(ReasoningClient):
    """Posts the raw capture and detections to an analysis server."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout_s: float = 30.0) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/api/analyze"
        self._timeout_s = max(1.0, float(timeout_s))

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def analyze(self, image_jpeg: bytes, payload: dict[str, Any]) -> dict[str, Any]:
        timestamp = str(payload.get("timestamp", ""))
        body, content_type = encode_multipart(
            fields={
                "detections": json.dumps(payload.get("detections") or []),
                "timestamp": timestamp,
            },
            files={"image": (f"raw-{file_stamp(timestamp)}.jpg", image_jpeg, "image/jpeg")},
        )
        http_request = request.Request(
            self._endpoint,
            data=body,
            headers={"Content-Type": content_type},
            method="POST",
        )
        LOGGER.info("[REASONING] POST %s (%s bytes)", self._endpoint, len(body))
        try:
            with request.urlopen(http_request, timeout=self._timeout_s) as response:
                raw = response.read().decode("utf-8")
        except error.HTTPError as exc:
            raise ReasoningError(self._error_message(exc), status=exc.code) from exc
        except error.URLError as exc:
            raise ReasoningError(f"Network error: {exc.reason}") from exc

        try:
            result = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ReasoningError("Analysis server returned non-JSON response") from exc
        if not isinstance(result, dict):
            raise ReasoningError("Analysis server returned unexpected payload")
        if "error" in result and "analysis" not in result:
            raise ReasoningError(str(result["error"]))
        return result

    def _error_message(self, exc: error.HTTPError) -> str:
        try:
            error_payload = json.loads(exc.read().decode("utf-8"))
        except (ValueError, OSError):
            error_payload = {}
        if isinstance(error_payload, dict) and error_payload.get("error"):
            return str(error_payload["error"])
        return f"HTTP {exc.code}"
