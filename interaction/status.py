"""Status sinks that surface session state and analysis responses to the user."""

from __future__ import annotations

import time
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from capture.annotate import compose_display_frame
from capture.frames import FrameSource, display_size_of
from core.logging import log_analysis, log_detections, log_error, log_status, logger
from vision.detections import DetectionRecord, FrameNotReadyError
from vision.renderer import RenderStyle


class StatusSink(Protocol):
    """Receiver for status text, analysis responses and per-frame overlays."""

    def set_status(self, text: str) -> None: ...

    def show_response(self, text: str, is_error: bool) -> None: ...

    def draw(self, records: Sequence[DetectionRecord]) -> None: ...


class ConsoleStatusSink:
    """Logs status changes and analysis text; overlays go to debug output."""

    def __init__(self) -> None:
        self.status = ""
        self.last_response: tuple[str, bool] | None = None
        self._last_drawn: tuple[str, ...] = ()

    def set_status(self, text: str) -> None:
        if text == self.status:
            return
        self.status = text
        log_status(text)

    def show_response(self, text: str, is_error: bool) -> None:
        self.last_response = (text, is_error)
        if is_error:
            log_error(text)
        else:
            log_analysis(text)

    def draw(self, records: Sequence[DetectionRecord]) -> None:
        labels = tuple(record.label for record in records)
        if labels == self._last_drawn:
            return
        self._last_drawn = labels
        log_detections(list(labels))


class PreviewStatusSink(ConsoleStatusSink):
    """Console sink that also writes the composed overlay frame to a JPEG file."""

    def __init__(
        self,
        frame_source: FrameSource,
        path: Path,
        style: RenderStyle | None = None,
        min_interval_s: float = 1.0,
    ) -> None:
        super().__init__()
        self.frame_source = frame_source
        self.path = Path(path)
        self.style = style or RenderStyle()
        self.min_interval_s = min_interval_s
        self._last_write = 0.0

    def draw(self, records: Sequence[DetectionRecord]) -> None:
        super().draw(records)
        now = time.monotonic()
        if self._last_write and now - self._last_write < self.min_interval_s:
            return
        try:
            frame = self.frame_source.snapshot()
        except FrameNotReadyError:
            return
        preview = compose_display_frame(frame, records, display_size_of(self.frame_source), self.style)
        self._last_write = now
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            preview.save(self.path, format="JPEG", quality=85)
        except OSError as exc:
            log_error(f"Preview write failed for {self.path}: {exc}")
            return
        logger.debug("[PREVIEW] wrote %s", self.path)
