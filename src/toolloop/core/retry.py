"""Retry with exponential backoff for provider calls."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from toolloop.core.errors import (
    ErrorKind,
    ProviderError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")
M = TypeVar("M")


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Configuration for retry with backoff.

    Delays are in seconds. ``max_attempts`` counts the first call.
    """

    max_attempts: int = 3
    token_limit_base_delay: float = 1.0
    token_limit_max_delay: float = 10.0
    rate_limit_base_delay: float = 2.0
    rate_limit_max_delay: float = 15.0


def is_retryable(error: Exception, *, can_reduce: bool = False) -> bool:
    """Check if an error should trigger a retry.

    Rate limits always retry. Context-length errors retry only when the
    caller can shrink the message list.
    """
    if not isinstance(error, ProviderError):
        return False
    if error.kind is ErrorKind.RATE_LIMITED:
        return True
    return error.kind is ErrorKind.CONTEXT_TOO_LONG and can_reduce


def compute_delay(attempt: int, config: RetryConfig, error: ProviderError) -> float:
    """Compute the backoff delay after a failed 1-based ``attempt``."""
    if error.kind is ErrorKind.RATE_LIMITED:
        base, cap = config.rate_limit_base_delay, config.rate_limit_max_delay
    else:
        base, cap = config.token_limit_base_delay, config.token_limit_max_delay
    delay: float = base * (2 ** (attempt - 1))
    return min(delay, cap)


async def retry_with_backoff(
    fn: Callable[[list[M]], Awaitable[T]],
    messages: list[M],
    config: RetryConfig | None = None,
    *,
    reduce: Callable[[int, list[M]], Awaitable[list[M]]] | None = None,
    on_retry: Callable[[int, float, ProviderError], None] | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Call ``fn(messages)`` with retry and exponential backoff.

    Args:
        fn: Single-argument callable sending a message list.
        messages: Messages for the first attempt.
        config: Retry configuration. Uses defaults if None.
        reduce: Optional callback(next_attempt, messages) returning a
            smaller message list. Enables retry on context-length errors.
        on_retry: Optional callback(attempt, delay, error) before each retry.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        The result of ``fn``.

    Raises:
        The original classified ProviderError, with ``attempts`` set,
        once retries are exhausted or immediately when not retryable.
        Non-provider errors propagate unchanged.
    """
    cfg = config or RetryConfig()
    current = messages

    for attempt in range(1, cfg.max_attempts + 1):
        try:
            return await fn(current)
        except ProviderError as e:
            e.attempts = attempt
            if attempt >= cfg.max_attempts:
                raise
            if not is_retryable(e, can_reduce=reduce is not None):
                raise
            delay = compute_delay(attempt, cfg, e)
            if on_retry is not None:
                on_retry(attempt, delay, e)
            await sleep(delay)
            if e.kind is ErrorKind.CONTEXT_TOO_LONG and reduce is not None:
                current = await reduce(attempt + 1, current)

    # Unreachable, but satisfies mypy
    msg = f"Retry loop exited unexpectedly (max_attempts={cfg.max_attempts})"
    raise RuntimeError(msg)
