"""Provider error classification.

Providers report failures heterogeneously, so adapters reduce them to
an :class:`ErrorKind` by looking at the HTTP status, the error code,
and well-known English message fragments. This is the only place that
string-matching happens; the retry logic sees the kind alone.
"""

from __future__ import annotations

from toolloop.core.errors import (
    ErrorKind,
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderTokenLimitError,
)

_CONTEXT_MARKERS = (
    "maximum context length",
    "context_length_exceeded",
    "token limit",
    "too many tokens",
    "reduce the length",
    "prompt is too long",
)

_RATE_LIMIT_MARKERS = (
    "rate limit exceeded",
    "too many requests",
    "quota exceeded",
)

_TIMEOUT_MARKERS = ("timed out", "timeout")


def is_token_limit_message(message: str) -> bool:
    text = message.lower()
    return any(marker in text for marker in _CONTEXT_MARKERS)


def is_rate_limit_error(
    status_code: int | None, code: str | None, message: str
) -> bool:
    if status_code == 429 or code == "rate_limit_exceeded":
        return True
    text = message.lower()
    if any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return True
    return "rate" in text and "limit" in text


def classify_error(
    status_code: int | None = None,
    code: str | None = None,
    message: str = "",
) -> ErrorKind:
    """Reduce a raw provider failure to an :class:`ErrorKind`.

    An explicit 429 status or ``rate_limit_exceeded`` code always means
    RATE_LIMITED. Otherwise context-length markers take precedence over
    rate-limit wording in the message.
    """
    if status_code == 429 or code == "rate_limit_exceeded":
        return ErrorKind.RATE_LIMITED
    if code == "context_length_exceeded" or is_token_limit_message(message):
        return ErrorKind.CONTEXT_TOO_LONG
    if is_rate_limit_error(status_code, code, message):
        return ErrorKind.RATE_LIMITED
    if status_code == 408:
        return ErrorKind.TIMEOUT
    text = message.lower()
    if any(marker in text for marker in _TIMEOUT_MARKERS):
        return ErrorKind.TIMEOUT
    return ErrorKind.OTHER


def error_for_kind(
    kind: ErrorKind,
    provider_id: str,
    message: str,
    *,
    retry_after: float | None = None,
) -> ProviderError:
    """Build the matching :class:`ProviderError` subclass for ``kind``."""
    if kind is ErrorKind.CONTEXT_TOO_LONG:
        return ProviderTokenLimitError(provider_id, message)
    if kind is ErrorKind.RATE_LIMITED:
        return ProviderRateLimitError(provider_id, message, retry_after=retry_after)
    if kind is ErrorKind.TIMEOUT:
        return ProviderTimeoutError(provider_id, message)
    return ProviderError(provider_id, message)
