"""Sliding-window presence tracker that authorizes automatic captures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.logging import logger
from vision.filters import ALL_OBJECTS


class PresenceState(str, Enum):
    """Whether automatic capture is armed."""

    NOT_WATCHING = "not_watching"
    WATCHING = "watching"


@dataclass(frozen=True)
class PresenceConfig:
    """Configuration for the presence window."""

    interval_seconds: int = 0
    threshold_fraction: float = 0.8
    interval_options: tuple[int, ...] = (0, 5, 10, 20, 30, 60)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PresenceConfig":
        section = config.get("presence") or {}
        return cls(
            interval_seconds=int(section.get("interval_seconds", 0)),
            threshold_fraction=float(section.get("threshold_fraction", 0.8)),
            interval_options=tuple(int(v) for v in section.get("interval_options", cls.interval_options)),
        )


@dataclass(frozen=True)
class PresencePeriod:
    """Closed interval during which the watched class was continuously seen."""

    start: float
    end: float


@dataclass(frozen=True)
class PresenceResult:
    """Result of a single ``observe`` call."""

    state: PresenceState
    fired: bool
    total_present_ms: float
    threshold_ms: float
    window_ms: float


class PresenceWindowTracker:
    """Tracks how much of the trailing window the watched class was present.

    A trigger fires when presence covers ``threshold_fraction`` of the window
    and at least one full window has elapsed since the previous trigger.
    """

    def __init__(self, config: PresenceConfig | None = None) -> None:
        self.config = config or PresenceConfig()
        self._interval_seconds = max(0, int(self.config.interval_seconds))
        self._watched_class = ALL_OBJECTS
        self._periods: list[PresencePeriod] = []
        self._current_start: float | None = None
        self._currently_present = False
        self._last_capture_ms: float | None = None

    @property
    def state(self) -> PresenceState:
        if self._interval_seconds > 0:
            return PresenceState.WATCHING
        return PresenceState.NOT_WATCHING

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    @property
    def watched_class(self) -> str:
        return self._watched_class

    @property
    def window_ms(self) -> float:
        return self._interval_seconds * 1000.0

    @property
    def periods(self) -> tuple[PresencePeriod, ...]:
        return tuple(self._periods)

    @property
    def current_start(self) -> float | None:
        return self._current_start

    @property
    def last_capture_ms(self) -> float | None:
        return self._last_capture_ms

    def configure(self, interval_seconds: int | None = None, watched_class: str | None = None) -> None:
        """Change the window or the watched class; any change fully resets tracking."""

        if interval_seconds is not None:
            self._interval_seconds = max(0, int(interval_seconds))
        if watched_class is not None:
            self._watched_class = watched_class
        self.reset()
        logger.info(
            "[PRESENCE] configured interval=%ss class=%s state=%s",
            self._interval_seconds,
            self._watched_class,
            self.state.value,
        )

    def reset(self) -> None:
        self._clear_tracking()
        self._last_capture_ms = None

    def observe(self, now_ms: float, is_present: bool, running: bool = True) -> PresenceResult:
        """Feed one fresh detection result and decide whether to trigger."""

        window_ms = self.window_ms
        threshold_ms = window_ms * self.config.threshold_fraction

        if self._interval_seconds == 0 or not running:
            self._clear_tracking()
            return PresenceResult(
                state=self.state,
                fired=False,
                total_present_ms=0.0,
                threshold_ms=threshold_ms,
                window_ms=window_ms,
            )

        if is_present and not self._currently_present:
            self._current_start = now_ms
        elif not is_present and self._currently_present:
            if self._current_start is not None:
                self._periods.append(PresencePeriod(start=self._current_start, end=now_ms))
                self._current_start = None
        self._currently_present = is_present

        window_start = now_ms - window_ms
        self._periods = [period for period in self._periods if period.end >= window_start]
        total_ms = self._total_present_ms(now_ms, window_start)

        fired = False
        if total_ms >= threshold_ms and self._cooldown_elapsed(now_ms, window_ms):
            fired = True
            self._last_capture_ms = now_ms
            self._rebaseline(now_ms - window_ms)
            logger.info(
                "[PRESENCE] trigger class=%s present=%.0fms threshold=%.0fms window=%.0fms",
                self._watched_class,
                total_ms,
                threshold_ms,
                window_ms,
            )

        return PresenceResult(
            state=self.state,
            fired=fired,
            total_present_ms=total_ms,
            threshold_ms=threshold_ms,
            window_ms=window_ms,
        )

    def _total_present_ms(self, now_ms: float, window_start: float) -> float:
        total = 0.0
        for period in self._periods:
            start = max(period.start, window_start)
            end = min(period.end, now_ms)
            if end > start:
                total += end - start
        if self._current_start is not None:
            start = max(self._current_start, window_start)
            if now_ms > start:
                total += now_ms - start
        return total

    def _cooldown_elapsed(self, now_ms: float, window_ms: float) -> bool:
        if self._last_capture_ms is None:
            return True
        return now_ms - self._last_capture_ms >= window_ms

    def _rebaseline(self, new_window_start: float) -> None:
        self._periods = [period for period in self._periods if period.end >= new_window_start]
        if self._current_start is not None and self._current_start < new_window_start:
            self._current_start = new_window_start

    def _clear_tracking(self) -> None:
        self._periods = []
        self._current_start = None
        self._currently_present = False
