"""
Configuration management for tabnab using Pydantic.

Configuration is read once at process start (YAML file, then ``TABNAB_``
environment variables) and passed around as a read-only value.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tabnab.exceptions import ConfigError
from tabnab.utils import atomic_write_text

log = logging.getLogger(__name__)

TABNAB_HOME = Path.home() / ".tabnab"
DEFAULT_CONFIG_PATH = TABNAB_HOME / "config.yaml"

# Checked in order after the configured key.
API_KEY_ENV_VARS = ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY")

# --- Nested Configuration Models ---


class AIConfig(BaseModel):
    """Defaults for the AI completion collaborator."""

    api_key: Optional[str] = Field(default=None, description="Anthropic API key.")
    default_model: str = Field(default="claude-sonnet-4-20250514", description="Model used when none is given.")
    default_temperature: float = Field(default=0.7, ge=0.0, le=1.0, description="Sampling temperature.")
    default_max_tokens: int = Field(default=4096, gt=0, description="Completion token limit.")

    def resolve_api_key(self) -> Optional[str]:
        """Return the configured key, falling back to the usual environment variables."""
        if self.api_key:
            return self.api_key
        for name in API_KEY_ENV_VARS:
            value = os.getenv(name)
            if value:
                return value
        return None

    def has_credential(self) -> bool:
        return self.resolve_api_key() is not None


class FetchConfig(BaseModel):
    """How document HTML is retrieved and how the fan-out is bounded."""

    mode: Literal["browser", "http"] = Field(
        default="browser",
        description="'browser' reads the live tab's DOM through AppleScript, 'http' re-requests the URL.",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds.")
    retries: int = Field(default=3, ge=1, description="Attempts per HTTP fetch.")
    user_agent: str = Field(
        default="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) tabnab/1.0",
        description="User-Agent string for HTTP requests.",
    )
    task_timeout: Optional[float] = Field(
        default=120.0,
        description="Deadline in seconds for a single document's extraction. None disables it.",
    )
    max_concurrency: int = Field(default=10, ge=1, description="Maximum extractions in flight at once.")

    @field_validator("task_timeout")
    @classmethod
    def validate_task_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("task_timeout must be positive or null")
        return v


class SinkConfig(BaseModel):
    """Clipboard sink settings."""

    clipboard_command: List[str] = Field(default_factory=lambda: ["pbcopy"], description="argv fed via stdin.")

    @field_validator("clipboard_command")
    @classmethod
    def validate_command(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("clipboard_command must not be empty")
        return v


class MonitoringConfig(BaseModel):
    """Logging configuration."""

    log_level: str = Field(default="WARNING", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: Optional[str] = Field(default=None, description="Path to log file. If None, logs to stderr.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    ai: AIConfig = Field(default_factory=AIConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    prompts_dir: Path = Field(default_factory=lambda: TABNAB_HOME / "prompts")

    model_config = SettingsConfigDict(env_prefix="TABNAB_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found or is not a file: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Configuration file {path} is not valid YAML: {e}") from e
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls()
        if not isinstance(yaml_data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")
        try:
            return cls(**yaml_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration for one process.

    An explicit path must exist. Without one, the default file is used when
    present and built-in defaults otherwise.
    """
    if path is not None:
        return Config.from_yaml(path)
    if DEFAULT_CONFIG_PATH.is_file():
        log.info("Loading configuration from: %s", DEFAULT_CONFIG_PATH)
        return Config.from_yaml(DEFAULT_CONFIG_PATH)
    log.debug("No config file found. Using default settings.")
    return Config()


def save_api_key(api_key: str, path: Optional[Path] = None) -> Path:
    """Persist the API key into the YAML config file, keeping other settings."""
    target = path or DEFAULT_CONFIG_PATH
    data: Dict[str, Any] = {}
    if target.is_file():
        with open(target, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    data.setdefault("ai", {})["api_key"] = api_key
    atomic_write_text(target, yaml.safe_dump(data, sort_keys=False))
    return target


def mask_api_key(api_key: str) -> str:
    """Show only the first eight and last four characters."""
    return f"{api_key[:8]}...{api_key[-4:]}"
