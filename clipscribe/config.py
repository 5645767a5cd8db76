"""
clipscribe.config - YAML config loading, override merging, validation.

Handles locating clipscribe.yaml, merging command-line overrides on top of
it, and validating every parameter the transcription pipeline needs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from clipscribe.exceptions import ConfigError

CONFIG_FILENAME = "clipscribe.yaml"


class ClipscribeConfig(BaseModel):
    """Resolved configuration for a transcription run."""

    mode: str = "local"

    max_concurrent_requests: int = Field(default=5, gt=0)
    remote_model: str = "whisper-1"
    remote_response_format: str = "text"
    remote_api_base: str | None = None

    local_backend: str = "transformers"
    local_model: str = "tiny"

    slice_duration: float = Field(default=10.0, gt=0.0)
    output_format: str = "txt"

    email_model: str = "gpt-4o"
    email_api_base: str | None = None
    email_company: str | None = None

    config_path: Path | None = None

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        valid = {"remote", "local"}
        if v not in valid:
            raise ValueError(f"mode must be one of: {valid}")
        return v

    @field_validator("local_backend")
    @classmethod
    def validate_local_backend(cls, v: str) -> str:
        valid = {"transformers", "faster", "mlx"}
        if v not in valid:
            raise ValueError(f"local_backend must be one of: {valid}")
        return v

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        valid = {"txt", "json"}
        if v not in valid:
            raise ValueError(f"output_format must be one of: {valid}")
        return v


def find_config_file(start: Path | None = None) -> Path | None:
    """Find clipscribe.yaml by walking up from ``start`` (default: cwd)."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def merge_config(file_config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge overrides on top of file config. None overrides are ignored."""
    merged = file_config.copy()
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ClipscribeConfig:
    """Load and validate configuration.

    Args:
        config_path: Explicit config file. When omitted, clipscribe.yaml is
            searched for from the working directory upwards; if none is
            found the built-in defaults apply.
        overrides: Values (typically from CLI options) that take precedence

    Returns:
        Validated ClipscribeConfig

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ConfigError: If the file is malformed or a value is invalid
    """
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"No config file found at {config_path}")

    path = config_path or find_config_file()
    raw_config: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigError(f"{path} must contain a mapping of settings")

    merged = merge_config(raw_config, overrides or {})
    merged["config_path"] = path

    try:
        return ClipscribeConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def create_default_config(mode: str = "local") -> dict[str, Any]:
    """Create a default config dict suitable for writing to clipscribe.yaml."""
    defaults = ClipscribeConfig(mode=mode).model_dump(exclude={"config_path"})
    return defaults


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
