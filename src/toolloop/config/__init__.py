"""Configuration loading and validation."""

from toolloop.config.loader import load_config
from toolloop.config.schema import (
    DebugConfig,
    GeneralConfig,
    LoggingConfig,
    ProviderConfig,
    RetryConfigModel,
    ToolloopConfig,
)

__all__ = [
    "DebugConfig",
    "GeneralConfig",
    "LoggingConfig",
    "ProviderConfig",
    "RetryConfigModel",
    "ToolloopConfig",
    "load_config",
]
