"""Tests for hardware diagnostics."""

from __future__ import annotations

from diagnostics.models import DiagnosticStatus
from hardware.diagnostics import HardwareProbeConfig, probe


def test_hardware_probe_warns_without_camera_stack() -> None:
    """Hardware probe should warn when only the image stack is present."""

    result = probe(
        config=HardwareProbeConfig(require_camera=False),
        available_modules={"numpy", "PIL"},
    )
    assert result.status is DiagnosticStatus.WARN
    assert "picamera2" in result.details


def test_hardware_probe_fails_when_camera_required() -> None:
    result = probe(
        config=HardwareProbeConfig(require_camera=True),
        available_modules={"numpy", "PIL"},
    )
    assert result.status is DiagnosticStatus.FAIL


def test_hardware_probe_fails_without_image_stack() -> None:
    result = probe(available_modules={"picamera2", "numpy"})
    assert result.status is DiagnosticStatus.FAIL
    assert "PIL" in result.details


def test_hardware_probe_passes_with_everything() -> None:
    result = probe(available_modules={"picamera2", "numpy", "PIL"})
    assert result.status is DiagnosticStatus.PASS
