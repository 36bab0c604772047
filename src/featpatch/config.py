"""``featpatch.yaml``: where the application tree lives and how to patch it.

Relative paths are resolved against the directory holding the config file,
so a config checked in next to the tree works from any working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import PatchError

DEFAULT_CONFIG_NAME = "featpatch.yaml"


class ConfigSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


class ProjectSection(ConfigSection):
    repo_root: Optional[str] = None


class PatchSection(ConfigSection):
    plan: Optional[str] = None
    strict: bool = False


class PathsSection(ConfigSection):
    report: Optional[str] = None


class FeatpatchConfig(BaseModel):
    """Validated contents of a featpatch config file."""

    model_config = ConfigDict(extra="forbid")

    project: ProjectSection = Field(default_factory=ProjectSection)
    patch: PatchSection = Field(default_factory=PatchSection)
    paths: PathsSection = Field(default_factory=PathsSection)
    base_dir: Optional[Path] = Field(default=None, exclude=True)

    def resolve(self, value: Optional[str]) -> Optional[Path]:
        if value is None:
            return None
        candidate = Path(value)
        if not candidate.is_absolute() and self.base_dir is not None:
            candidate = (self.base_dir / candidate).resolve()
        return candidate

    @property
    def repo_root(self) -> Optional[Path]:
        return self.resolve(self.project.repo_root)

    @property
    def plan_path(self) -> Optional[Path]:
        return self.resolve(self.patch.plan)

    @property
    def report_path(self) -> Optional[Path]:
        return self.resolve(self.paths.report)


def load_config(config_path: Path | str) -> FeatpatchConfig:
    """Read and validate ``config_path``; any problem surfaces as ``PatchError``."""
    path = Path(config_path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError as error:
        raise PatchError(f"Config file not found: {path}", path=str(path)) from error
    except yaml.YAMLError as error:
        raise PatchError(f"Failed to parse config {path}: {error}", path=str(path)) from error

    if not isinstance(data, dict):
        raise PatchError(f"Config {path} must be a mapping at the top level.", path=str(path))
    try:
        config = FeatpatchConfig.model_validate(data)
    except ValidationError as error:
        raise PatchError(f"Invalid config {path}:\n{error}", path=str(path)) from error
    config.base_dir = path.resolve().parent
    return config


def discover_config(config: Optional[str] = None) -> FeatpatchConfig:
    """Load ``config`` when given, else ``featpatch.yaml`` in the cwd if present."""
    if config:
        return load_config(config)
    default_path = Path(DEFAULT_CONFIG_NAME)
    if default_path.exists():
        return load_config(default_path)
    return FeatpatchConfig()


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "FeatpatchConfig",
    "PatchSection",
    "PathsSection",
    "ProjectSection",
    "discover_config",
    "load_config",
]
