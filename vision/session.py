"""Detection session: drives inference, overlay rendering and automatic capture."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from capture.frames import FrameSource, display_size_of
from capture.pipeline import AnalysisResult, CaptureAnalysisPipeline
from core.logging import logger
from interaction.status import ConsoleStatusSink, StatusSink
from vision.detections import DetectionRecord, DetectorFrame, FrameNotReadyError, Viewport
from vision.filters import ALL_OBJECTS, is_known_filter, is_selected_type_detected
from vision.presence import PresenceConfig, PresenceWindowTracker
from vision.renderer import DetectionRenderer, RenderStyle
from vision.smoothing import BoxSmoother, SmoothingConfig

STATUS_ACTIVE = "Detection active"
STATUS_STOPPED = "Detection stopped"
STATUS_SENDING = "Sending to API..."
STATUS_RECEIVED = "Analysis received"


class SessionState(str, Enum):
    """Lifecycle of a detection session."""

    IDLE = "idle"
    DETECTING = "detecting"
    CAPTURING = "capturing"


class Detector(Protocol):
    def detect(self) -> DetectorFrame | None: ...


@dataclass(frozen=True)
class SessionConfig:
    """Loop rates and the initial object filter."""

    inference_fps: float = 12.0
    display_fps: float = 60.0
    object_filter: str = ALL_OBJECTS

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SessionConfig":
        section = config.get("detection") or {}
        object_filter = str(section.get("object_filter", ALL_OBJECTS))
        if not is_known_filter(object_filter):
            logger.warning("[SESSION] unknown object filter %r; using %r", object_filter, ALL_OBJECTS)
            object_filter = ALL_OBJECTS
        return cls(
            inference_fps=float(section.get("inference_fps", 12.0)),
            display_fps=float(section.get("display_fps", 60.0)),
            object_filter=object_filter,
        )

    @property
    def inference_interval_ms(self) -> float:
        return 1000.0 / self.inference_fps if self.inference_fps > 0 else 0.0


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class DetectionSession:
    """Owns all per-session state; every mutation happens on the event loop thread.

    Captures run as background tasks. Stopping bumps the session generation so
    results that arrive afterwards are logged and dropped instead of relayed.
    """

    def __init__(
        self,
        detector: Detector,
        frame_source: FrameSource,
        pipeline: CaptureAnalysisPipeline,
        *,
        status: StatusSink | None = None,
        config: SessionConfig | None = None,
        smoothing: SmoothingConfig | None = None,
        presence: PresenceConfig | None = None,
        style: RenderStyle | None = None,
    ) -> None:
        self.detector = detector
        self.frame_source = frame_source
        self.pipeline = pipeline
        self.status = status or ConsoleStatusSink()
        self.config = config or SessionConfig()
        self.smoother = BoxSmoother(smoothing)
        self.renderer = DetectionRenderer(self.smoother, style)
        self.tracker = PresenceWindowTracker(presence)
        self.tracker.configure(watched_class=self.config.object_filter)

        self._state = SessionState.IDLE
        self._running = False
        self._generation = 0
        self._object_filter = self.config.object_filter
        self._last_inference_ms: float | None = None
        self._records: list[DetectionRecord] = []
        self._timers: list[asyncio.TimerHandle] = []
        self._captures: set[asyncio.Task[AnalysisResult]] = set()
        self._captures_in_flight = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def object_filter(self) -> str:
        return self._object_filter

    @property
    def records(self) -> list[DetectionRecord]:
        return list(self._records)

    @property
    def pending_captures(self) -> set[asyncio.Task[AnalysisResult]]:
        return set(self._captures)

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._generation += 1
        self._state = SessionState.DETECTING
        self._last_inference_ms = None
        self.tracker.reset()
        logger.info("[SESSION] started (generation %s, filter=%s)", self._generation, self._object_filter)
        self.status.set_status(STATUS_ACTIVE)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._generation += 1
        self._state = SessionState.IDLE
        self._cancel_timers()
        self._clear_tracking()
        logger.info("[SESSION] stopped; %s capture(s) still in flight", len(self._captures))
        self.status.set_status(STATUS_STOPPED)
        self.status.draw([])

    def tick(self, now_ms: float | None = None) -> list[DetectionRecord]:
        """Run one display tick; inference happens at most once per inference interval."""

        if not self._running:
            return []
        now_ms = monotonic_ms() if now_ms is None else now_ms

        if (
            self._last_inference_ms is not None
            and now_ms - self._last_inference_ms < self.config.inference_interval_ms
        ):
            return list(self._records)

        frame = self.detector.detect()
        if frame is None:
            return list(self._records)
        self._last_inference_ms = now_ms

        display_width, display_height = display_size_of(self.frame_source)
        viewport = Viewport(
            source_width=frame.source_width,
            source_height=frame.source_height,
            display_width=display_width,
            display_height=display_height,
        )
        try:
            records = self.renderer.render(frame.detections, viewport, self._object_filter)
        except FrameNotReadyError as exc:
            logger.debug("[SESSION] skipping frame: %s", exc)
            return list(self._records)

        self._records = records
        self.status.draw(records)

        present = is_selected_type_detected(records, self._object_filter)
        result = self.tracker.observe(now_ms, present, running=self._running)
        if result.fired:
            logger.info("[SESSION] automatic capture triggered")
            self._launch_capture(records)
        return list(records)

    def request_capture(self, download: bool | None = None) -> asyncio.Task[AnalysisResult] | None:
        """Capture the current frame with the last drawn records."""

        logger.info("[SESSION] manual capture requested")
        return self._launch_capture(list(self._records), download)

    def set_object_filter(self, object_filter: str) -> None:
        if not is_known_filter(object_filter):
            raise ValueError(f"Unknown object filter: {object_filter}")
        self._object_filter = object_filter
        self.smoother.clear()
        self._records = []
        self.tracker.configure(watched_class=object_filter)
        self.status.draw([])

    def set_capture_interval(self, seconds: int) -> None:
        options = self.tracker.config.interval_options
        if options and seconds not in options:
            raise ValueError(f"Capture interval must be one of {list(options)}")
        self.tracker.configure(interval_seconds=seconds)

    async def run(self) -> None:
        """Tick at the display rate until the session is stopped."""

        self.start()
        period_s = 1.0 / self.config.display_fps if self.config.display_fps > 0 else 0.0
        while self._running:
            self.tick(monotonic_ms())
            await asyncio.sleep(period_s)

    async def wait_for_captures(self) -> list[AnalysisResult]:
        if not self._captures:
            return []
        return list(await asyncio.gather(*self._captures))

    def _launch_capture(
        self,
        records: list[DetectionRecord],
        download: bool | None = None,
    ) -> asyncio.Task[AnalysisResult] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[SESSION] no running event loop; capture skipped")
            return None

        task = loop.create_task(self._capture(self._generation, records, download))
        self._captures.add(task)
        task.add_done_callback(self._captures.discard)
        return task

    async def _capture(
        self,
        generation: int,
        records: list[DetectionRecord],
        download: bool | None,
    ) -> AnalysisResult:
        self._captures_in_flight += 1
        if generation == self._generation:
            if self._running:
                self._state = SessionState.CAPTURING
            self.status.set_status(STATUS_SENDING)
        try:
            result = await self.pipeline.capture_and_analyze(self.frame_source, records, download)
        finally:
            self._captures_in_flight -= 1
            if self._running and self._captures_in_flight == 0:
                self._state = SessionState.DETECTING

        if generation != self._generation:
            logger.info("[SESSION] discarding analysis from stopped session (generation %s)", generation)
            return result

        self._relay(result)
        return result

    def _relay(self, result: AnalysisResult) -> None:
        if result.ok:
            self.status.set_status(STATUS_RECEIVED)
            self.status.show_response(result.display_text, False)
            self._schedule_restore(self.pipeline.config.success_restore_s)
        else:
            self.status.set_status(f"API Error: {result.error}")
            self.status.show_response(result.display_text, True)
            self._schedule_restore(self.pipeline.config.error_restore_s)

    def _schedule_restore(self, delay_s: float) -> None:
        loop = asyncio.get_running_loop()
        self._timers = [timer for timer in self._timers if timer.when() > loop.time()]
        self._timers.append(loop.call_later(delay_s, self._restore_status))

    def _restore_status(self) -> None:
        if self._running:
            self.status.set_status(STATUS_ACTIVE)

    def _cancel_timers(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers = []

    def _clear_tracking(self) -> None:
        self.smoother.clear()
        self.tracker.reset()
        self._records = []
        self._last_inference_ms = None
