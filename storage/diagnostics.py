"""Diagnostics routines for capture artifact storage."""

from __future__ import annotations

from pathlib import Path

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(artifact_dir: Path | None = None) -> DiagnosticResult:
    """Check that the capture artifact directory can be created and written.

    Args:
        artifact_dir: Optional directory override for offline testing.

    Returns:
        Diagnostic result indicating storage readiness.
    """

    name = "storage"
    try:
        if artifact_dir is None:
            from config import ConfigController

            storage_config = ConfigController.get_instance().get_section("storage")
            artifact_dir = Path(storage_config.get("artifact_dir", "./var/captures"))
        artifact_dir = Path(artifact_dir).expanduser()

        artifact_dir.mkdir(parents=True, exist_ok=True)
        sentinel = artifact_dir / "diagnostics_probe.txt"
        sentinel.write_text("ok", encoding="utf-8")
        sentinel.unlink(missing_ok=True)
    except OSError as exc:
        details = f"Filesystem access failed: {exc}"
        return DiagnosticResult(name=name, status=DiagnosticStatus.FAIL, details=details)

    details = f"Capture artifacts writable at {artifact_dir}"
    return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details=details)
