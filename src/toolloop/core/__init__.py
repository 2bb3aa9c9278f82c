"""Core errors and shared retry utilities."""

from toolloop.core.errors import (
    ConfigError,
    DuplicateToolError,
    ErrorKind,
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderTokenLimitError,
    ToolArgumentError,
    ToolChoiceError,
    ToolError,
    ToolExecutionError,
    ToolloopError,
    ToolNotFoundError,
)
from toolloop.core.retry import (
    RetryConfig,
    compute_delay,
    is_retryable,
    retry_with_backoff,
)

__all__ = [
    "ConfigError",
    "DuplicateToolError",
    "ErrorKind",
    "ProviderAuthError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "ProviderTokenLimitError",
    "RetryConfig",
    "ToolArgumentError",
    "ToolChoiceError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolloopError",
    "compute_delay",
    "is_retryable",
    "retry_with_backoff",
]
