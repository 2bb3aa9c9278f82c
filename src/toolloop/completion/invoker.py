"""Completion invoker: one provider call with timeout, retry and capture.

Wraps :meth:`ModelProvider.send` so the agentic loop sees either a
response or a classified, already-retried :class:`ProviderError`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any

from toolloop.core.errors import ProviderTimeoutError, ToolChoiceError
from toolloop.core.retry import RetryConfig, retry_with_backoff
from toolloop.providers.base import PinnedTool

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from toolloop.completion.capture import DebugCapture
    from toolloop.core.errors import ProviderError
    from toolloop.providers.base import (
        CompletionResponse,
        Message,
        ModelProvider,
        ToolChoice,
    )

    MessageReducer = Callable[[int, list[Message]], Awaitable[list[Message]]]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0
DEFAULT_MAX_OUTPUT_TOKENS = 10_000

_POLICIES = ("auto", "none", "required")


def check_tool_choice(
    tools: Sequence[dict[str, Any]] | None,
    tool_choice: ToolChoice,
) -> None:
    """Reject tool-choice policies that cannot be honoured.

    ``required`` or a pinned tool with no tools attached is a caller
    error rather than a silent downgrade to ``auto``.

    Raises:
        ToolChoiceError: On an inconsistent policy.
    """
    if isinstance(tool_choice, PinnedTool):
        names = {t.get("function", t).get("name") for t in tools or ()}
        if tool_choice.name not in names:
            msg = f"Pinned tool {tool_choice.name!r} is not in the tool list"
            raise ToolChoiceError(msg)
        return
    if tool_choice not in _POLICIES:
        msg = f"Unknown tool choice: {tool_choice!r}"
        raise ToolChoiceError(msg)
    if tool_choice == "required" and not tools:
        msg = "tool_choice 'required' needs at least one tool"
        raise ToolChoiceError(msg)


def _response_payload(response: CompletionResponse) -> dict[str, Any]:
    raw = response.raw_response
    dump = getattr(raw, "model_dump", None)
    return {
        "model": response.model_id,
        "content": response.content,
        "tool_calls": [tc.to_dict() for tc in response.tool_calls or ()],
        "finish_reason": response.finish_reason,
        "usage": {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        },
        "latency_ms": response.latency_ms,
        "raw": dump(mode="json") if callable(dump) else None,
    }


def _format_elapsed(ms: float) -> str:
    return f"{ms / 1000:.1f}s" if ms >= 1000 else f"{ms:.0f}ms"


class CompletionInvoker:
    """Sends a conversation to one provider/model with retry.

    Args:
        provider: Provider adapter to call.
        model_id: Model to request.
        max_output_tokens: Max output tokens per call.
        timeout: Seconds before a hung call is abandoned. A timeout is
            fatal and is not retried.
        retry: Backoff policy.
        capture: Optional sink for request/response debug payloads.
        sleep: Awaitable sleep used between retries.
    """

    def __init__(
        self,
        provider: ModelProvider,
        model_id: str,
        *,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        timeout: float = DEFAULT_TIMEOUT,
        retry: RetryConfig | None = None,
        capture: DebugCapture | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        self._provider = provider
        self._model_id = model_id
        self._max_output_tokens = max_output_tokens
        self._timeout = timeout
        self._retry = retry or RetryConfig()
        self._capture = capture
        self._sleep = sleep

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def provider_id(self) -> str:
        return self._provider.provider_id

    async def invoke(
        self,
        messages: Sequence[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice = "auto",
        reduce_messages: MessageReducer | None = None,
        capture_name: str | None = None,
    ) -> CompletionResponse:
        """Request a completion, retrying transient failures.

        Args:
            messages: Conversation to send.
            tools: Wire-format tool list, or None for a tool-less call.
            tool_choice: Policy sent alongside ``tools``.
            reduce_messages: Callback(next_attempt, messages) that shrinks
                the conversation. Without it, context-length errors are fatal.
            capture_name: Destination prefix for debug capture.

        Raises:
            ToolChoiceError: If ``tool_choice`` is inconsistent with ``tools``.
            ProviderError: The classified error once retries are exhausted.
        """
        check_tool_choice(tools, tool_choice)

        async def _send(current: list[Message]) -> CompletionResponse:
            return await self._send_once(current, tools, tool_choice, capture_name)

        return await retry_with_backoff(
            _send,
            list(messages),
            self._retry,
            reduce=reduce_messages,
            on_retry=self._log_retry,
            sleep=self._sleep,
        )

    async def _send_once(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        tool_choice: ToolChoice,
        capture_name: str | None,
    ) -> CompletionResponse:
        request = self._request_payload(messages, tools, tool_choice)
        size = len(json.dumps(request["messages"], default=str))
        logger.info(
            "Requesting completion: model=%s provider=%s messages=%d size=%.2fKB",
            self._model_id,
            self._provider.provider_id,
            len(messages),
            size / 1024,
        )
        await self._write_capture(capture_name, "request", request)

        start = time.monotonic()
        try:
            async with asyncio.timeout(self._timeout):
                response = await self._provider.send(
                    messages,
                    self._model_id,
                    max_tokens=self._max_output_tokens,
                    tools=tools or None,
                    tool_choice=tool_choice if tools else None,
                )
        except TimeoutError as e:
            msg = f"Completion timed out after {self._timeout:g} seconds"
            raise ProviderTimeoutError(self._provider.provider_id, msg) from e

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Completion received in %s: %d prompt + %d completion = %d tokens",
            _format_elapsed(elapsed_ms),
            response.usage.input_tokens,
            response.usage.output_tokens,
            response.usage.total_tokens,
        )
        await self._write_capture(capture_name, "response", _response_payload(response))
        return response

    def _request_payload(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None,
        tool_choice: ToolChoice,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._model_id,
            "messages": [m.to_dict() for m in messages],
            "max_completion_tokens": self._max_output_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = (
                {"type": "function", "function": {"name": tool_choice.name}}
                if isinstance(tool_choice, PinnedTool)
                else tool_choice
            )
        return payload

    async def _write_capture(
        self, capture_name: str | None, suffix: str, payload: dict[str, Any]
    ) -> None:
        if self._capture is None or not capture_name:
            return
        destination = f"{capture_name}-{suffix}"
        try:
            await self._capture.write(destination, payload)
        except Exception:
            logger.warning("Failed to write debug capture %s", destination, exc_info=True)
        else:
            logger.debug("Wrote debug capture %s", destination)

    def _log_retry(self, attempt: int, delay: float, error: ProviderError) -> None:
        logger.warning(
            "%s on attempt %d/%d, retrying in %.1fs: %s",
            error.kind.value,
            attempt,
            self._retry.max_attempts,
            delay,
            error,
        )
