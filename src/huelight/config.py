"""Configuration management for huelight."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import yaml


APPLICATION_NAME = "huelight"

# Default configuration file, relative to the working directory
DEFAULT_CONFIG_FILE = Path("config.yaml")

ENV_PREFIX = "HUELIGHT_"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when no configuration file exists at the requested path."""

    def __init__(self, path: Path):
        super().__init__(f'Config file "{path}" not found')
        self.path = path


def env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read a ``HUELIGHT_*`` environment variable."""
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _candidate_paths(path: Path) -> list[Path]:
    # config.yaml and config.yml are interchangeable
    if path.suffix == ".yaml":
        return [path, path.with_suffix(".yml")]
    if path.suffix == ".yml":
        return [path, path.with_suffix(".yaml")]
    return [path]


@dataclass(frozen=True)
class HueLightConfig:
    """Bridge address, username and application name."""

    bridge: Optional[str] = None
    username: Optional[str] = None
    application: str = APPLICATION_NAME

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "bridge": self.bridge or "",
            "username": self.username or "",
            "application": self.application,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HueLightConfig:
        """Create from dictionary."""
        bridge = data.get("bridge")
        username = data.get("username")
        return cls(
            bridge=str(bridge) if bridge else None,
            username=str(username) if username else None,
            application=str(data.get("application") or APPLICATION_NAME),
        )

    @classmethod
    def load(cls, config_file: Path = DEFAULT_CONFIG_FILE) -> HueLightConfig:
        """Load configuration from file.

        Raises:
            ConfigNotFoundError: if neither the file nor its .yml/.yaml
                sibling exists
            ConfigError: if the file exists but is not a YAML mapping
        """
        config_file = Path(config_file)
        for candidate in _candidate_paths(config_file):
            if candidate.is_file():
                break
        else:
            raise ConfigNotFoundError(config_file)

        try:
            with open(candidate, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to load config from {candidate}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {candidate} must contain a YAML mapping")
        return cls.from_dict(data)

    def save(self, config_file: Path = DEFAULT_CONFIG_FILE) -> None:
        """Save configuration to file."""
        config_file = Path(config_file)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False, default_flow_style=False)

    def merged(
        self,
        bridge: Optional[str] = None,
        username: Optional[str] = None,
    ) -> HueLightConfig:
        """Return a copy with command-line overrides applied."""
        updates: dict[str, Any] = {}
        if bridge:
            updates["bridge"] = bridge
        if username:
            updates["username"] = username
        return replace(self, **updates)
