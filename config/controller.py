"""Configuration controller for YAML-based settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class ConfigPaths:
    """Filesystem paths for configuration files."""

    config_dir: Path
    config_file: Path
    override_file: Path


class ConfigController:
    """Singleton controller for loading and updating configuration."""

    _instance: "ConfigController | None" = None

    def __init__(self, config_file: str = "default.yaml", config_dir: Path | None = None) -> None:
        if ConfigController._instance is not None:
            raise RuntimeError("You cannot create another ConfigController class")

        config_dir = config_dir if config_dir is not None else DEFAULT_CONFIG_DIR
        self.paths = ConfigPaths(
            config_dir=config_dir,
            config_file=config_dir / config_file,
            override_file=config_dir / "override.yaml",
        )
        self.config: dict[str, Any] = {}
        self.load_config()
        ConfigController._instance = self

    @classmethod
    def get_instance(cls) -> "ConfigController":
        """Return the singleton instance of the controller."""

        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def load_config(self) -> None:
        """Load default.yaml, then deep-merge override.yaml on top when present."""

        config = _read_yaml(self.paths.config_file)
        if self.paths.override_file.exists():
            config = self._deep_merge(config, _read_yaml(self.paths.override_file))
        self.config = self._normalize_config(config)

    def save_config(self, config: dict[str, Any]) -> None:
        """Persist configuration to override.yaml, archiving previous overrides."""

        if self.paths.override_file.exists():
            index = 1
            while self._archive_path(index).exists():
                index += 1
            self.paths.override_file.rename(self._archive_path(index))

        with self.paths.override_file.open("w", encoding="utf-8") as file:
            yaml.safe_dump(config, file)

    def get_config(self) -> dict[str, Any]:
        """Return the currently loaded configuration."""

        return dict(self.config)

    def set_config(self, config: dict[str, Any]) -> None:
        """Set and persist configuration values."""

        self.config = self._normalize_config(dict(config))
        self.save_config(self.config)

    def _archive_path(self, index: int) -> Path:
        filename = f"override_{index:04d}.yaml"
        return self.paths.config_dir / filename

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge dictionaries, overriding base values with override values."""

        merged = dict(base)
        for key, value in override.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_section(self, name: str) -> dict[str, Any]:
        """Return a copy of one top-level section, empty when absent."""

        section = self.config.get(name)
        return dict(section) if isinstance(section, dict) else {}

    def _normalize_config(self, config: dict[str, Any]) -> dict[str, Any]:
        normalized = dict(config)
        normalized["presence"] = _normalize_presence(normalized)
        normalized["detection"] = _normalize_detection(normalized.get("detection") or {})
        reasoning = dict(normalized.get("reasoning") or {})
        reasoning["provider"] = str(reasoning.get("provider") or "null").strip().lower()
        normalized["reasoning"] = reasoning
        return normalized


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as file:
        loaded = yaml.safe_load(file)
    return loaded if isinstance(loaded, dict) else {}


def _normalize_presence(config: dict[str, Any]) -> dict[str, Any]:
    """Accept the flat ``auto_capture_interval`` key; option 0 is always offered."""

    presence = dict(config.get("presence") or {})
    presence["interval_seconds"] = int(
        presence.get("interval_seconds", config.get("auto_capture_interval", 0))
    )
    options = presence.get("interval_options") or [0, 5, 10, 20, 30, 60]
    presence["interval_options"] = sorted({int(value) for value in options} | {0})
    presence["threshold_fraction"] = float(presence.get("threshold_fraction", 0.8))
    return presence


def _normalize_detection(section: dict[str, Any]) -> dict[str, Any]:
    detection = dict(section)
    for key, default in (("inference_fps", 12), ("display_fps", 60)):
        rate = float(detection.get(key, default))
        detection[key] = rate if rate > 0 else default
    detection["object_filter"] = str(detection.get("object_filter", "all")).strip().lower()
    return detection
