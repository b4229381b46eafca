"""Capture-and-analyze pipeline: freeze a frame, annotate it, hand it to a reasoning client."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from PIL import Image

from capture.annotate import annotate_source_frame
from capture.frames import FrameSource, display_size_of, encode_jpeg
from core.logging import logger
from services.reasoning.service import ReasoningClient
from storage.artifacts import CaptureArtifacts, CaptureArtifactStore
from vision.detections import DetectionRecord
from vision.renderer import RenderStyle


@dataclass(frozen=True)
class CaptureConfig:
    """Configuration for captures and the status relay that follows them."""

    annotate: bool = True
    download: bool = False
    send_annotated: bool = False
    jpeg_quality: int = 95
    success_restore_s: float = 0.5
    error_restore_s: float = 3.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CaptureConfig":
        section = config.get("capture") or {}
        return cls(
            annotate=bool(section.get("annotate", True)),
            download=bool(section.get("download", False)),
            send_annotated=bool(section.get("send_annotated", False)),
            jpeg_quality=int(section.get("jpeg_quality", 95)),
            success_restore_s=float(section.get("success_restore_s", 0.5)),
            error_restore_s=float(section.get("error_restore_s", 3.0)),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one capture-and-analyze run."""

    ok: bool
    payload: dict[str, Any]
    analysis: str | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    artifacts: CaptureArtifacts | None = None

    @property
    def display_text(self) -> str:
        if self.ok:
            return self.analysis or "No analysis available"
        return f"Error: {self.error}"


def iso_timestamp(now: datetime | None = None) -> str:
    """Return a UTC ISO-8601 timestamp with millisecond precision and a ``Z`` suffix."""

    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_payload(records: Sequence[DetectionRecord], timestamp: str) -> dict[str, Any]:
    return {
        "timestamp": timestamp,
        "detections": [record.to_payload() for record in records],
    }


class CaptureAnalysisPipeline:
    """Stateless and reentrant; every call works on its own snapshot."""

    def __init__(
        self,
        client: ReasoningClient,
        *,
        artifact_store: CaptureArtifactStore | None = None,
        style: RenderStyle | None = None,
        config: CaptureConfig | None = None,
        before_send: Callable[[bytes, dict[str, Any]], None] | None = None,
        after_response: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.client = client
        self.artifact_store = artifact_store
        self.style = style or RenderStyle()
        self.config = config or CaptureConfig()
        self._before_send = before_send
        self._after_response = after_response

    async def capture_and_analyze(
        self,
        frame_source: FrameSource,
        detections: Sequence[DetectionRecord],
        download: bool | None = None,
    ) -> AnalysisResult:
        """Run the full capture flow; failures come back as ``ok=False`` results."""

        records = list(detections)
        timestamp = iso_timestamp()
        payload = build_payload(records, timestamp)
        should_download = self.config.download if download is None else download

        try:
            raw_image = frame_source.snapshot()
            annotated = None
            if self.config.annotate:
                annotated = annotate_source_frame(
                    raw_image,
                    records,
                    display_size_of(frame_source)[0],
                    self.style,
                )

            artifacts = None
            if should_download:
                artifacts = await asyncio.to_thread(self._persist, timestamp, raw_image, payload, annotated)

            outgoing = annotated if (self.config.send_annotated and annotated is not None) else raw_image
            image_jpeg = encode_jpeg(outgoing, self.config.jpeg_quality)
            if self._before_send is not None:
                self._before_send(image_jpeg, payload)

            logger.info("[CAPTURE] sending %s detection(s) for analysis", len(records))
            response = await asyncio.to_thread(self.client.analyze, image_jpeg, payload)
            if self._after_response is not None:
                self._after_response(response)
        except Exception as exc:  # noqa: BLE001 - converted into a failed result
            logger.warning("[CAPTURE] analysis failed: %s", exc)
            return AnalysisResult(ok=False, payload=payload, error=str(exc) or type(exc).__name__)

        metadata = {key: value for key, value in response.items() if key != "analysis"}
        logger.info("[CAPTURE] analysis received")
        return AnalysisResult(
            ok=True,
            payload=payload,
            analysis=response.get("analysis") or "No analysis available",
            metadata=metadata,
            artifacts=artifacts,
        )

    def _persist(
        self,
        timestamp: str,
        raw_image: Image.Image,
        payload: dict[str, Any],
        annotated: Image.Image | None,
    ) -> CaptureArtifacts | None:
        if self.artifact_store is None:
            logger.warning("[CAPTURE] download requested but no artifact store configured")
            return None
        return self.artifact_store.save(timestamp, raw_image, payload, annotated_image=annotated)
