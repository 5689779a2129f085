"""
Configuration management for frame-translate.

Handles loading configuration from YAML files and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from frame_translate.transport.chunker import CHUNK_SIZE, MAX_PAYLOAD_SIZE, ChunkResponsePolicy

# Load .env file if present (before Settings initialization)
load_dotenv()


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = Field(default="frame-translate")
    description: str = Field(default="")


class TransportConfig(BaseModel):
    """Configuration for the translation service endpoints."""

    translate_url: str = Field(default="http://localhost:5678/webhook/translate")
    # Defaults to translate_url when empty
    upload_url: str = Field(default="")
    auth_token: str = Field(default="")
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)
    max_retries: int = Field(default=3, ge=1, le=10)
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0)


class ChunkingConfig(BaseModel):
    """Configuration for splitting oversized exports."""

    max_payload_bytes: int = Field(default=MAX_PAYLOAD_SIZE, ge=1024)
    batch_size: int = Field(default=CHUNK_SIZE, ge=1, le=10000)
    response_policy: ChunkResponsePolicy = Field(default=ChunkResponsePolicy.MERGE)


class ExportConfig(BaseModel):
    """Configuration for exports and duplicated frames."""

    languages: list[str] = Field(default_factory=lambda: ["es"])
    include_image: bool = Field(default=True)
    # Horizontal gap between the original frame and each duplicate
    duplicate_spacing: float = Field(default=100.0, ge=0.0)

    @field_validator("languages")
    @classmethod
    def normalize_languages(cls, v: list[str]) -> list[str]:
        """Lower-case codes and drop blanks."""
        return [lang.strip().lower() for lang in v if lang.strip()]


class FontsConfig(BaseModel):
    """Configuration for font handling."""

    default_family: str = Field(default="Inter")
    default_style: str = Field(default="Regular")
    em_base_px: float = Field(default=16.0, gt=0.0)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO")
    file: Path | None = Field(default=Path("./logs/frame-translate.log"))
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    backup_count: int = Field(default=5, ge=1, le=20)


class Settings(BaseSettings):
    """Main settings class that combines all configurations."""

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for simpler env vars
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    fonts: FontsConfig = Field(default_factory=FontsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, **data: Any) -> None:
        """Initialize with an environment fallback for the auth token."""
        super().__init__(**data)
        if not self.transport.auth_token:
            self.transport.auth_token = os.getenv("FRAME_TRANSLATE_TOKEN", "")

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Load settings from a YAML file, with environment variable overrides."""
        path = Path(path)
        if not path.exists():
            # Return defaults if file doesn't exist
            return cls()

        with open(path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        # Process environment variable substitutions in YAML values
        yaml_config = _substitute_env_vars(yaml_config)

        return cls(**yaml_config)


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively substitute ${ENV_VAR} patterns in config values."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _substitute_env_vars(value)
        elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            result[key] = os.getenv(value[2:-1], "")
        elif isinstance(value, list):
            result[key] = [
                _substitute_env_vars(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def load_config(path: Path | str | None = None) -> Settings:
    """
    Load configuration from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, looks for config.yaml in current directory.

    Returns:
        Settings instance with merged YAML and environment configurations.
    """
    if path is None:
        default_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(".frame-translate.yaml"),
        ]
        for p in default_paths:
            if p.exists():
                path = p
                break

    if path is not None:
        return Settings.from_yaml(path)

    return Settings()


DEFAULT_CONFIG = """# frame-translate configuration
project:
  name: "frame-translate"

transport:
  # Endpoint receiving export payloads
  translate_url: "http://localhost:5678/webhook/translate"
  # Endpoint receiving reviewed translations (defaults to translate_url)
  upload_url: ""
  # Bearer token (or set FRAME_TRANSLATE_TOKEN)
  auth_token: "${FRAME_TRANSLATE_TOKEN}"
  timeout_seconds: 60
  # Attempts per request; network errors and 5xx are retried
  max_retries: 3
  # Base delay for exponential backoff (seconds)
  retry_delay: 1

chunking:
  # Exports larger than this are split into batches
  max_payload_bytes: 5242880
  batch_size: 200
  # "merge": combine every batch response
  # "last": the service aggregates and answers the final batch
  response_policy: "merge"

export:
  languages:
    - "es"
  # Attach a rendering of the frame to each export
  include_image: true
  # Gap between the original frame and each translated duplicate
  duplicate_spacing: 100

fonts:
  # Used when a text node's font cannot be read
  default_family: "Inter"
  default_style: "Regular"
  # Pixel size of 1em when no font size is known
  em_base_px: 16

logging:
  level: "INFO"
  file: "./logs/frame-translate.log"
"""


def create_default_config(path: Path | str = "config.yaml") -> None:
    """Create a default configuration file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)
