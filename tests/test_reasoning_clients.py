"""Tests for reasoning collaborators."""

from __future__ import annotations

import io
import json
from unittest.mock import patch
from urllib import error

import pytest

from services.reasoning import (
    HttpReasoningClient,
    NullReasoningClient,
    OpenAIVisionClient,
    ReasoningError,
    build_prompt,
    build_reasoning_client,
    detection_summary,
)
from services.reasoning.http_client import encode_multipart

PAYLOAD = {
    "timestamp": "2024-05-01T12:34:56.789Z",
    "detections": [
        {"categoryName": "person", "score": 0.876, "x": 10, "y": 20, "width": 30, "height": 40},
    ],
}


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None


class FakeOpenAIVisionClient(OpenAIVisionClient):
    def __init__(self, response: dict, **kwargs) -> None:
        super().__init__(api_key="test-key", **kwargs)
        self.response = response
        self.bodies: list[dict] = []

    def _chat_call(self, body: dict) -> dict:
        self.bodies.append(body)
        return self.response


def test_detection_summary_line_format() -> None:
    assert detection_summary(PAYLOAD["detections"]) == (
        "person (88% confidence) at position [10, 20] with size 30×40"
    )


def test_null_client_reports_disabled() -> None:
    result = NullReasoningClient().analyze(b"jpeg", PAYLOAD)

    assert result["analysis"] == "Reasoning disabled"
    assert result["detection_count"] == 1


def test_multipart_body_contains_fields_and_file() -> None:
    body, content_type = encode_multipart({"timestamp": "now"}, {"image": ("raw.jpg", b"\xff\xd8", "image/jpeg")})

    boundary = content_type.split("boundary=", 1)[1]
    assert content_type.startswith("multipart/form-data")
    assert f"--{boundary}--".encode() in body
    assert b'name="timestamp"\r\n\r\nnow\r\n' in body
    assert b'filename="raw.jpg"' in body
    assert b"\xff\xd8" in body


def test_http_client_posts_multipart_and_returns_json() -> None:
    client = HttpReasoningClient(base_url="http://server:3001/")
    captured = {}

    def fake_urlopen(req, timeout):
        captured["request"] = req
        captured["timeout"] = timeout
        return FakeResponse(json.dumps({"analysis": "A person", "requestId": "abc"}).encode())

    with patch("services.reasoning.http_client.request.urlopen", side_effect=fake_urlopen):
        result = client.analyze(b"\xff\xd8jpeg", PAYLOAD)

    req = captured["request"]
    assert req.full_url == "http://server:3001/api/analyze"
    assert req.get_method() == "POST"
    assert b'filename="raw-2024-05-01T12-34-56.jpg"' in req.data
    assert b'"categoryName": "person"' in req.data
    assert captured["timeout"] == 30.0
    assert result == {"analysis": "A person", "requestId": "abc"}


def test_http_client_uses_server_error_message() -> None:
    client = HttpReasoningClient()
    http_error = error.HTTPError(
        client.endpoint, 500, "Server Error", {}, io.BytesIO(b'{"error": "model offline"}')
    )

    with patch("services.reasoning.http_client.request.urlopen", side_effect=http_error):
        with pytest.raises(ReasoningError, match="model offline") as info:
            client.analyze(b"jpeg", PAYLOAD)

    assert info.value.status == 500


def test_http_client_falls_back_to_status_code() -> None:
    client = HttpReasoningClient()
    http_error = error.HTTPError(client.endpoint, 502, "Bad Gateway", {}, io.BytesIO(b"<html>"))

    with patch("services.reasoning.http_client.request.urlopen", side_effect=http_error):
        with pytest.raises(ReasoningError, match="HTTP 502"):
            client.analyze(b"jpeg", PAYLOAD)


def test_http_client_wraps_network_errors() -> None:
    with patch(
        "services.reasoning.http_client.request.urlopen",
        side_effect=error.URLError("connection refused"),
    ):
        with pytest.raises(ReasoningError, match="Network error"):
            HttpReasoningClient().analyze(b"jpeg", PAYLOAD)


def test_http_client_rejects_error_payload() -> None:
    with patch(
        "services.reasoning.http_client.request.urlopen",
        return_value=FakeResponse(b'{"error": "No image file provided"}'),
    ):
        with pytest.raises(ReasoningError, match="No image file provided"):
            HttpReasoningClient().analyze(b"jpeg", PAYLOAD)


def test_openai_client_requires_api_key() -> None:
    with pytest.raises(ReasoningError, match="OPENAI_API_KEY"):
        OpenAIVisionClient(api_key="").analyze(b"jpeg", PAYLOAD)


def test_openai_client_builds_vision_request() -> None:
    client = FakeOpenAIVisionClient(
        {"choices": [{"message": {"content": "A person waving"}}], "model": "gpt-4o", "usage": {"total_tokens": 9}},
    )

    result = client.analyze(b"jpeg", PAYLOAD)

    body = client.bodies[0]
    assert body["model"] == "gpt-4o"
    assert body["max_tokens"] == 500
    text_part, image_part = body["messages"][0]["content"]
    assert "person (88% confidence)" in text_part["text"]
    assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")
    assert result == {"analysis": "A person waving", "model": "gpt-4o", "usage": {"total_tokens": 9}}


def test_openai_client_handles_empty_choices() -> None:
    client = FakeOpenAIVisionClient({"choices": []})

    assert client.analyze(b"jpeg", PAYLOAD)["analysis"] == "No analysis available"


def test_custom_prompt_replaces_default_instructions() -> None:
    prompt = build_prompt("cat (90% confidence)", "Is the cat asleep?")

    assert prompt.startswith("Is the cat asleep?")
    assert "Detected objects:\ncat (90% confidence)" in prompt
    assert "Be specific" not in prompt


def test_factory_selects_provider() -> None:
    assert isinstance(build_reasoning_client({}), NullReasoningClient)
    assert isinstance(build_reasoning_client({"reasoning": {"provider": "bogus"}}), NullReasoningClient)

    http_client = build_reasoning_client(
        {"reasoning": {"provider": "http", "http": {"base_url": "http://example:9000"}}}
    )
    assert isinstance(http_client, HttpReasoningClient)
    assert http_client.endpoint == "http://example:9000/api/analyze"

    assert isinstance(build_reasoning_client({"reasoning": {"provider": "openai"}}), OpenAIVisionClient)
