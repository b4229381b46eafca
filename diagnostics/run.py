"""Command-line entry point for running diagnostics."""

from __future__ import annotations

import argparse
from collections.abc import Callable
from pathlib import Path
import tempfile

from config.diagnostics import probe as config_probe
from core.diagnostics import probe as core_probe
from diagnostics.models import DiagnosticResult
from diagnostics.runner import format_results, has_failures, run_diagnostics
from hardware.diagnostics import HardwareProbeConfig, probe as hardware_probe
from services.reasoning.diagnostics import probe as reasoning_probe
from storage.diagnostics import probe as storage_probe


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Run diagnostics probes.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run probes against a temporary offline directory.",
    )
    parser.add_argument(
        "--require-camera",
        action="store_true",
        help="Treat a missing camera stack as a failure.",
    )
    return parser.parse_args(argv)


def offline_probes(base_dir: Path) -> list[Callable[[], DiagnosticResult]]:
    """Probes that touch only ``base_dir`` and never the network or camera."""

    config_dir = base_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text("{}", encoding="utf-8")

    def config_probe_offline() -> DiagnosticResult:
        return config_probe(base_dir=base_dir)

    def core_probe_offline() -> DiagnosticResult:
        return core_probe(log_file=base_dir / "log" / "watchframe.log")

    def hardware_probe_offline() -> DiagnosticResult:
        return hardware_probe(
            config=HardwareProbeConfig(require_camera=False),
            available_modules={"numpy", "PIL"},
        )

    def reasoning_probe_offline() -> DiagnosticResult:
        return reasoning_probe(config={"reasoning": {"provider": "null"}})

    def storage_probe_offline() -> DiagnosticResult:
        return storage_probe(artifact_dir=base_dir / "var" / "captures")

    return [
        config_probe_offline,
        core_probe_offline,
        hardware_probe_offline,
        reasoning_probe_offline,
        storage_probe_offline,
    ]


def live_probes(require_camera: bool = False) -> list[Callable[[], DiagnosticResult]]:
    def hardware_probe_live() -> DiagnosticResult:
        return hardware_probe(config=HardwareProbeConfig(require_camera=require_camera))

    return [config_probe, core_probe, hardware_probe_live, reasoning_probe, storage_probe]


def main(argv: list[str] | None = None) -> int:
    """Run diagnostics and return an exit code."""

    args = parse_args(argv)

    if args.offline:
        with tempfile.TemporaryDirectory() as tmp_dir:
            results = run_diagnostics(offline_probes(Path(tmp_dir)))
    else:
        results = run_diagnostics(live_probes(args.require_camera))

    print(format_results(results))
    return 1 if has_failures(results) else 0


if __name__ == "__main__":
    raise SystemExit(main())
