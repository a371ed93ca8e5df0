"""
whisper_transcribe.config - YAML config loading, env overrides, validation.

Handles loading config.yaml from the user config directory (or the current
directory), applying WHISPER_* environment overrides, and describing a
single transcription job.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from whisper_transcribe.exceptions import ConfigError
from whisper_transcribe.transcribe.models import MODEL_NAMES

CONFIG_FILENAME = "config.yaml"
USER_CONFIG_DIR = Path.home() / ".config" / "whisper-transcribe"

ENV_OVERRIDES = {
    "WHISPER_DEFAULT_MODEL": "default_model",
    "WHISPER_OUTPUT_DIR": "output_dir",
    "WHISPER_TIMESTAMPS": "timestamps",
}


def default_output_dir() -> Path:
    return Path.home() / "transcripts"


class AppConfig(BaseModel):
    """Resolved user configuration."""

    default_model: str = "base"
    output_dir: Path = Field(default_factory=default_output_dir)
    timestamps: bool = False

    @field_validator("default_model")
    @classmethod
    def validate_default_model(cls, v: str) -> str:
        if v not in MODEL_NAMES:
            raise ValueError(f"default_model must be one of: {', '.join(MODEL_NAMES)}")
        return v

    @field_validator("output_dir")
    @classmethod
    def expand_output_dir(cls, v: Path) -> Path:
        return v.expanduser()


class TranscriptionJob(BaseModel):
    """Settings for a single transcription run.

    Owned by the caller and passed by value into the pipeline, which never
    mutates it.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1)
    model: str = Field(default="base", min_length=1)
    include_timestamps: bool = False
    output_dir: Path = Field(default_factory=default_output_dir)

    @field_validator("source")
    @classmethod
    def strip_source(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("source is required")
        return v

    @property
    def is_remote(self) -> bool:
        return is_remote_source(self.source)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        source: str,
        model: str | None = None,
        include_timestamps: bool | None = None,
        output_dir: Path | None = None,
    ) -> TranscriptionJob:
        """Build a job from config defaults and explicit overrides."""
        return cls(
            source=source,
            model=model or config.default_model,
            include_timestamps=(
                config.timestamps if include_timestamps is None else include_timestamps
            ),
            output_dir=(output_dir or config.output_dir).expanduser(),
        )


def is_remote_source(source: str) -> bool:
    lowered = source.strip().lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Return the config file to load, or None to use defaults."""
    if explicit is not None:
        if not explicit.exists():
            raise ConfigError(f"Config file not found: {explicit}")
        return explicit
    for candidate in (USER_CONFIG_DIR / CONFIG_FILENAME, Path.cwd() / CONFIG_FILENAME):
        if candidate.exists():
            return candidate
    return None


def apply_env_overrides(
    raw: dict[str, Any], environ: dict[str, str] | None = None
) -> dict[str, Any]:
    """Overlay WHISPER_* environment variables on raw config values."""
    environ = os.environ if environ is None else environ
    merged = dict(raw)
    for var, key in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            merged[key] = value
    return merged


def load_config(
    path: Path | None = None, environ: dict[str, str] | None = None
) -> AppConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file; searched in the default locations if None
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: If the file is unreadable or holds invalid values
    """
    raw_config: dict[str, Any] = {}
    config_file = find_config_file(path)

    if config_file is not None:
        try:
            with open(config_file) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigError(f"Config file must contain a mapping: {config_file}")

    merged = apply_env_overrides(raw_config, environ)

    try:
        return AppConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def create_default_config() -> dict[str, Any]:
    """Create a default config mapping for a new config file."""
    defaults = AppConfig()
    return {
        "default_model": defaults.default_model,
        "output_dir": str(defaults.output_dir),
        "timestamps": defaults.timestamps,
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
