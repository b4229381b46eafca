"""Tests for EMA smoothing and the dead zone."""

from __future__ import annotations

import pytest

from vision.detections import DisplayRect
from vision.smoothing import BoxSmoother, SmoothingConfig, dead_zone


def test_alpha_is_confidence_weighted_and_clamped() -> None:
    smoother = BoxSmoother(SmoothingConfig(base_alpha=0.25))

    assert smoother.alpha_for(0.5) == pytest.approx(0.45)
    assert smoother.alpha_for(1.0) == pytest.approx(0.65)
    assert smoother.alpha_for(5.0) == pytest.approx(0.9)
    assert BoxSmoother(SmoothingConfig(base_alpha=-1.0)).alpha_for(0.0) == pytest.approx(0.1)


def test_first_sighting_is_stored_unchanged() -> None:
    smoother = BoxSmoother()
    rect = DisplayRect(10.0, 20.0, 30.0, 40.0)

    assert smoother.update("person", rect, 0.9) is rect
    assert smoother.get("person") is rect


def test_ema_converges_toward_constant_target() -> None:
    smoother = BoxSmoother(SmoothingConfig(base_alpha=0.25, dead_zone_eps=0.0))
    smoother.update("dog", DisplayRect(0.0, 0.0, 10.0, 10.0), 0.5)
    target = DisplayRect(100.0, 100.0, 50.0, 50.0)

    previous = smoother.get("dog")
    for _ in range(40):
        result = smoother.update("dog", target, 0.5)
        assert abs(result.x - target.x) < abs(previous.x - target.x)
        assert abs(result.width - target.width) < abs(previous.width - target.width)
        previous = result

    assert result.x == pytest.approx(100.0, abs=0.01)
    assert result.width == pytest.approx(50.0, abs=0.01)


def test_dead_zone_stops_short_of_target() -> None:
    smoother = BoxSmoother(SmoothingConfig(base_alpha=0.25, dead_zone_eps=2.0))
    smoother.update("dog", DisplayRect(0.0, 0.0, 10.0, 10.0), 0.5)
    target = DisplayRect(100.0, 100.0, 50.0, 50.0)

    for _ in range(40):
        result = smoother.update("dog", target, 0.5)

    # Once a step would move a field by less than epsilon it freezes.
    assert abs(result.x - 100.0) < 2.0 / 0.45
    assert smoother.update("dog", target, 0.5) is result


def test_dead_zone_returns_previous_object_when_nothing_moved() -> None:
    prev = DisplayRect(10.0, 10.0, 10.0, 10.0)

    assert dead_zone(prev, DisplayRect(11.0, 10.5, 10.0, 11.9), 2.0) is prev


def test_dead_zone_updates_only_fields_that_moved() -> None:
    prev = DisplayRect(10.0, 10.0, 10.0, 10.0)

    assert dead_zone(prev, DisplayRect(15.0, 11.0, 10.0, 12.0), 2.0) == DisplayRect(15.0, 10.0, 10.0, 12.0)


def test_small_jitter_keeps_stored_box() -> None:
    smoother = BoxSmoother()
    first = DisplayRect(100.0, 100.0, 50.0, 50.0)
    smoother.update("cat", first, 0.5)

    assert smoother.update("cat", DisplayRect(101.0, 100.0, 50.0, 50.0), 0.5) is first
    assert smoother.get("cat") is first


def test_prune_evicts_absent_keys() -> None:
    smoother = BoxSmoother()
    smoother.update("cat", DisplayRect(0.0, 0.0, 1.0, 1.0))
    smoother.update("dog", DisplayRect(0.0, 0.0, 1.0, 1.0))

    assert smoother.prune(["dog"]) == ["cat"]
    assert "cat" not in smoother
    assert smoother.keys() == {"dog"}

    smoother.clear()
    assert len(smoother) == 0
