"""Per-label temporal smoothing of display boxes using EMA and a dead zone."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from vision.detections import DisplayRect


CONFIDENCE_GAIN = 0.4
MIN_ALPHA = 0.1
MAX_ALPHA = 0.9


@dataclass(frozen=True)
class SmoothingConfig:
    """Configuration for box smoothing."""

    base_alpha: float = 0.25
    dead_zone_eps: float = 2.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SmoothingConfig":
        section = config.get("smoothing") or {}
        return cls(
            base_alpha=float(section.get("base_alpha", cls.base_alpha)),
            dead_zone_eps=float(section.get("dead_zone_eps", cls.dead_zone_eps)),
        )


def dead_zone(prev: DisplayRect, new: DisplayRect, epsilon: float) -> DisplayRect:
    """Keep each field of ``prev`` whose change is below ``epsilon``.

    Returns ``prev`` itself when no field moved far enough.
    """

    x = prev.x if abs(new.x - prev.x) < epsilon else new.x
    y = prev.y if abs(new.y - prev.y) < epsilon else new.y
    width = prev.width if abs(new.width - prev.width) < epsilon else new.width
    height = prev.height if abs(new.height - prev.height) < epsilon else new.height
    if (x, y, width, height) == (prev.x, prev.y, prev.width, prev.height):
        return prev
    return DisplayRect(x=x, y=y, width=width, height=height)


class BoxSmoother:
    """Owns the ``key -> smoothed rect`` map for one detection session.

    Keys are class labels, so several objects of the same class share one box.
    """

    def __init__(self, config: SmoothingConfig | None = None) -> None:
        self.config = config or SmoothingConfig()
        self._boxes: dict[str, DisplayRect] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._boxes

    def __len__(self) -> int:
        return len(self._boxes)

    def get(self, key: str) -> DisplayRect | None:
        return self._boxes.get(key)

    def keys(self) -> set[str]:
        return set(self._boxes)

    def alpha_for(self, confidence: float) -> float:
        """Return the confidence-weighted EMA factor."""

        alpha = self.config.base_alpha + confidence * CONFIDENCE_GAIN
        return max(MIN_ALPHA, min(MAX_ALPHA, alpha))

    def smooth(self, key: str, new_rect: DisplayRect, confidence: float = 0.5) -> DisplayRect:
        """Apply the EMA step for ``key`` and store the result."""

        prev = self._boxes.get(key)
        if prev is None:
            self._boxes[key] = new_rect
            return new_rect

        alpha = self.alpha_for(confidence)
        smoothed = DisplayRect(
            x=prev.x + alpha * (new_rect.x - prev.x),
            y=prev.y + alpha * (new_rect.y - prev.y),
            width=prev.width + alpha * (new_rect.width - prev.width),
            height=prev.height + alpha * (new_rect.height - prev.height),
        )
        self._boxes[key] = smoothed
        return smoothed

    def update(self, key: str, new_rect: DisplayRect, confidence: float = 0.5) -> DisplayRect:
        """EMA then dead zone against the previously stored value."""

        prev = self._boxes.get(key)
        smoothed = self.smooth(key, new_rect, confidence)
        if prev is None:
            return smoothed
        final = dead_zone(prev, smoothed, self.config.dead_zone_eps)
        self._boxes[key] = final
        return final

    def prune(self, present_keys: Iterable[str]) -> list[str]:
        """Drop keys missing from the current frame and return them."""

        present = set(present_keys)
        stale = [key for key in self._boxes if key not in present]
        for key in stale:
            del self._boxes[key]
        return stale

    def clear(self) -> None:
        self._boxes.clear()
