"""Diagnostics routines for the logging core."""

from __future__ import annotations

import importlib.util
from pathlib import Path

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(log_file: Path | None = None) -> DiagnosticResult:
    """Check that the shared logger is usable and the log directory is writable.

    Args:
        log_file: Optional file-logging target to validate.

    Returns:
        Diagnostic result indicating logging readiness.
    """

    name = "core"
    from core import logging as core_logging

    if core_logging.logger is None or not core_logging.logger.handlers:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Core logger failed to initialize",
        )

    rich_available = importlib.util.find_spec("rich") is not None
    details = "Rich logging enabled" if rich_available else "Rich logging not available (plain handler)"

    if log_file is not None:
        log_dir = log_file.expanduser().parent
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.WARN,
                details=f"{details}; log directory {log_dir} not writable: {exc}",
            )
        details = f"{details}; file logs in {log_dir}"

    return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details=details)
