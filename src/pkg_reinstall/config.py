"""Configuration for pkg-reinstall."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from pkg_reinstall.errors import ConfigurationError

DEFAULT_TRACKING_FILE = "packages.yaml"
DEFAULT_PROJECT_FILE = "project.yaml"


@dataclass(frozen=True)
class ReinstallConfig:
    """Configuration for file-backed projects and the CLI.

    Attributes:
        tracking_file_name: Name of the package-tracking file in the project root.
        project_file_name: Name of the file holding the project's references.
        source: Package source location (directory path, file:// or redis:// URL).
        redis_prefix: Key prefix used when the source is Redis.
    """

    tracking_file_name: str = DEFAULT_TRACKING_FILE
    project_file_name: str = DEFAULT_PROJECT_FILE
    source: str | None = None
    redis_prefix: str = "packages"

    def __post_init__(self) -> None:
        if not self.tracking_file_name:
            raise ConfigurationError("tracking_file_name must not be empty")
        if not self.project_file_name:
            raise ConfigurationError("project_file_name must not be empty")
        if self.tracking_file_name == self.project_file_name:
            raise ConfigurationError(
                "tracking_file_name and project_file_name must be different files"
            )

    @classmethod
    def from_yaml(cls, path: Path) -> ReinstallConfig:
        """Load configuration from YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        return cls._from_dict(data)

    @classmethod
    def from_env(cls) -> ReinstallConfig:
        """Load configuration from environment variables."""
        data: dict[str, Any] = {}

        if source := os.environ.get("PKG_REINSTALL_SOURCE"):
            data["source"] = source
        if tracking := os.environ.get("PKG_REINSTALL_TRACKING_FILE"):
            data["tracking_file_name"] = tracking
        if project_file := os.environ.get("PKG_REINSTALL_PROJECT_FILE"):
            data["project_file_name"] = project_file
        if prefix := os.environ.get("PKG_REINSTALL_REDIS_PREFIX"):
            data["redis_prefix"] = prefix

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ReinstallConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)
