"""Configuration loading: YAML files over defaults, plus environment settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from codefortify.errors import ConfigurationError
from codefortify.models import ScoringConfig

CONFIG_FILENAMES = ("codefortify.yaml", ".codefortify.yaml", "codefortify.yml", ".codefortify.yml")


class FortifySettings(BaseSettings):
    """Run settings loaded from CODEFORTIFY_* env vars or a .env file."""

    project_root: str = "."
    config_file: str = ""
    verbose: bool = False
    strict: bool = False

    # CI
    ci_format: str = ""  # overrides gates.ci.format when set
    output_path: str = ""

    # History
    record_history: bool = False
    history_db_path: str = ""

    model_config = {
        "env_prefix": "CODEFORTIFY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base*.

    - Dicts are merged recursively.
    - Lists and scalars from *override* replace those in *base*.
    """
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def find_config_file(project_root: str | Path) -> Path | None:
    root = Path(project_root)
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ScoringConfig:
    """Build a ScoringConfig from defaults, an optional YAML file and overrides."""
    data = ScoringConfig().model_dump()
    if path is not None:
        data = _deep_merge(data, _load_yaml(Path(path)))
    if overrides:
        data = _deep_merge(data, overrides)
    try:
        return ScoringConfig.model_validate(data)
    except ValidationError as e:
        source = f" in {path}" if path is not None else ""
        raise ConfigurationError(f"Invalid configuration{source}: {e}") from e


def config_from_settings(settings: FortifySettings) -> ScoringConfig:
    path = Path(settings.config_file) if settings.config_file else find_config_file(settings.project_root)
    overrides: dict[str, Any] = {"project_root": settings.project_root}
    if settings.verbose:
        overrides["verbose"] = True
        overrides["gates"] = {"verbose": True}
    if settings.ci_format:
        overrides = _deep_merge(overrides, {"gates": {"ci": {"format": settings.ci_format}}})
    if settings.history_db_path:
        overrides["history_path"] = settings.history_db_path
    return load_config(path, overrides)
