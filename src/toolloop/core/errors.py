"""Exception hierarchy for toolloop.

Every module imports from here. The hierarchy is:

    ToolloopError
    ├── ToolError(tool_name)
    │   ├── DuplicateToolError
    │   ├── ToolNotFoundError
    │   └── ToolExecutionError
    │       └── ToolArgumentError
    ├── ProviderError(provider_id, attempts)
    │   ├── ProviderTokenLimitError
    │   ├── ProviderRateLimitError(retry_after)
    │   ├── ProviderTimeoutError
    │   └── ProviderAuthError
    ├── ToolChoiceError
    └── ConfigError
"""

from __future__ import annotations

import enum


class ToolloopError(Exception):
    """Base exception for all toolloop errors."""


class ErrorKind(enum.Enum):
    """Closed set of provider failure kinds seen by the retry logic."""

    RATE_LIMITED = "rate_limited"
    CONTEXT_TOO_LONG = "context_too_long"
    TIMEOUT = "timeout"
    OTHER = "other"


# ─── Tool Errors ──────────────────────────────────────────────


class ToolError(ToolloopError):
    """Base for tool registration and dispatch errors."""

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class DuplicateToolError(ToolError):
    """A tool with the same name is already registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f'Tool "{tool_name}" is already registered')


class ToolNotFoundError(ToolError):
    """The requested tool is not in the registry."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f'Tool "{tool_name}" not found in registry')


class ToolExecutionError(ToolError):
    """A tool raised while executing. Wraps the original message."""

    def __init__(self, tool_name: str, message: str) -> None:
        self.original_message = message
        super().__init__(tool_name, f'Tool "{tool_name}" execution failed: {message}')


class ToolArgumentError(ToolExecutionError):
    """Arguments supplied by the model do not match the tool schema."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(tool_name, f"invalid arguments: {message}")


# ─── Provider Errors ──────────────────────────────────────────


class ProviderError(ToolloopError):
    """Base for provider-related errors."""

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, provider_id: str, message: str) -> None:
        self.provider_id = provider_id
        self.attempts = 1
        super().__init__(f"[{provider_id}] {message}")


class ProviderTokenLimitError(ProviderError):
    """Request exceeded the model's context window."""

    kind = ErrorKind.CONTEXT_TOO_LONG


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded. Includes retry_after if available."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        provider_id: str,
        message: str = "Rate limited",
        retry_after: float | None = None,
    ) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message += f" (retry after {retry_after}s)"
        super().__init__(provider_id, message)


class ProviderTimeoutError(ProviderError):
    """Model call timed out."""

    kind = ErrorKind.TIMEOUT


class ProviderAuthError(ProviderError):
    """Invalid or missing API key."""


# ─── Caller Errors ────────────────────────────────────────────


class ToolChoiceError(ToolloopError):
    """Tool-choice policy is inconsistent with the tools supplied."""


class ConfigError(ToolloopError):
    """Invalid configuration."""


class TranscriptError(ToolloopError):
    """A saved transcript could not be read back."""
