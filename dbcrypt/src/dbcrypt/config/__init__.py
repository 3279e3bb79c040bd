"""Configuration models and loaders for dbcrypt."""

from .loader import ConfigLoadError, get_config, load_config, reset_config
from .schema import (
    BootstrapSettings,
    ClassifierSettings,
    EngineSettings,
    LoggingSettings,
    ToolConfig,
)

__all__ = [
    "BootstrapSettings",
    "ClassifierSettings",
    "ConfigLoadError",
    "EngineSettings",
    "LoggingSettings",
    "ToolConfig",
    "get_config",
    "load_config",
    "reset_config",
]
