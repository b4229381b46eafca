"""Diagnostics routines for the reasoning collaborator."""

from __future__ import annotations

import os
from typing import Any

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe(config: dict[str, Any] | None = None, api_key: str | None = None) -> DiagnosticResult:
    """Check that the configured reasoning provider can be used.

    Args:
        config: Loaded configuration; defaults to the config controller's.
        api_key: Optional API key override for offline testing.

    Returns:
        Diagnostic result indicating reasoning readiness.
    """

    name = "reasoning"
    if config is None:
        from config import ConfigController

        reasoning_cfg = ConfigController.get_instance().get_section("reasoning")
    else:
        reasoning_cfg = config.get("reasoning") or {}
    provider = str(reasoning_cfg.get("provider", "null")).strip().lower()

    if provider == "openai":
        key = api_key if api_key is not None else os.getenv("OPENAI_API_KEY", "")
        if not key:
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details="OPENAI_API_KEY not set for openai provider",
            )
        return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details="OpenAI provider configured")

    if provider == "http":
        base_url = str((reasoning_cfg.get("http") or {}).get("base_url", ""))
        if not base_url.startswith(("http://", "https://")):
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details=f"Invalid analysis server URL: {base_url!r}",
            )
        return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details=f"Analysis server at {base_url}")

    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.WARN,
        details="Reasoning disabled (null provider)",
    )
