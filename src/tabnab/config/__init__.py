"""Configuration for tabnab."""

from .config import (
    AIConfig,
    Config,
    FetchConfig,
    MonitoringConfig,
    SinkConfig,
    load_config,
    mask_api_key,
    save_api_key,
)

__all__ = [
    "AIConfig",
    "Config",
    "FetchConfig",
    "MonitoringConfig",
    "SinkConfig",
    "load_config",
    "mask_api_key",
    "save_api_key",
]
