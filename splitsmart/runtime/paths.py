"""Centralized path management for splitsmart.

All configuration files live under one config directory: ``config/`` below the
project root (the working directory), or ``SPLITSMART_CONFIG_DIR`` when set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_DIR_ENV = "SPLITSMART_CONFIG_DIR"


def _get_project_root() -> Path:
    """Determine the project root directory."""
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for all project-related paths."""

    root: Path = field(default_factory=_get_project_root)
    config_override: Path | None = None

    def __post_init__(self) -> None:
        self.root = self.root.resolve()
        if self.config_override is None and os.environ.get(CONFIG_DIR_ENV):
            self.config_override = Path(os.environ[CONFIG_DIR_ENV]).expanduser()

    @property
    def config(self) -> Path:
        """Configuration directory (config/ or $SPLITSMART_CONFIG_DIR)."""
        if self.config_override is not None:
            return self.config_override.resolve()
        return self.root / "config"

    @property
    def classification_config(self) -> Path:
        """Engine, preset and LLM settings TOML file."""
        return self.config / "classification.toml"

    @property
    def keyword_rules(self) -> Path:
        """Project-level keyword table extensions TOML file."""
        return self.config / "keywords.toml"

    @property
    def api_key_file(self) -> Path:
        """File holding the LLM API key (mode 0600)."""
        return self.config / "llm_api_key"

    def ensure_config_directory(self) -> None:
        self.config.mkdir(parents=True, exist_ok=True)


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Drop the singleton so the next get_paths() re-reads the environment."""
    global _paths
    _paths = None
