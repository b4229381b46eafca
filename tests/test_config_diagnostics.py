"""Tests for config diagnostics."""

from __future__ import annotations

from diagnostics.models import DiagnosticStatus
from config.diagnostics import probe


def test_config_probe_offline(tmp_path) -> None:
    """Config probe should pass with a default config present."""

    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text("{}", encoding="utf-8")

    result = probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.PASS


def test_config_probe_fails_without_default(tmp_path) -> None:
    (tmp_path / "config").mkdir()

    result = probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.FAIL


def test_config_probe_rejects_non_mapping_override(tmp_path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "default.yaml").write_text("smoothing: {}\n", encoding="utf-8")
    (config_dir / "override.yaml").write_text("- not\n- a mapping\n", encoding="utf-8")

    result = probe(base_dir=tmp_path)
    assert result.status is DiagnosticStatus.FAIL
    assert "override.yaml" in result.details


def test_shipped_config_parses() -> None:
    result = probe()
    assert result.status is DiagnosticStatus.PASS
