"""OpenAI (chat completions) provider adapter."""

from __future__ import annotations

import contextlib
import time
from typing import TYPE_CHECKING, Any

import openai

from toolloop.core.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderTimeoutError,
)
from toolloop.providers.base import (
    CompletionResponse,
    PinnedTool,
    TokenUsage,
    ToolCallRequest,
)
from toolloop.providers.classify import classify_error, error_for_kind

if TYPE_CHECKING:
    from toolloop.providers.base import Message, ToolChoice

PROVIDER_ID = "openai"

DEFAULT_TIMEOUT = 300.0


def _retry_after(e: openai.APIStatusError) -> float | None:
    response = getattr(e, "response", None)
    if response is None:
        return None
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    with contextlib.suppress(ValueError):
        return float(raw)
    return None


def _map_error(e: openai.APIError) -> ProviderError:
    """Map OpenAI SDK errors to the toolloop error hierarchy."""
    if isinstance(e, openai.APITimeoutError):
        return ProviderTimeoutError(PROVIDER_ID, str(e))
    if isinstance(e, openai.AuthenticationError):
        return ProviderAuthError(PROVIDER_ID, str(e))

    status_code = e.status_code if isinstance(e, openai.APIStatusError) else None
    code = e.code if isinstance(e.code, str) else None
    kind = classify_error(status_code, code, str(e))
    retry_after = _retry_after(e) if isinstance(e, openai.APIStatusError) else None
    return error_for_kind(kind, PROVIDER_ID, str(e), retry_after=retry_after)


def _build_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert Messages to OpenAI chat message format."""
    return [msg.to_dict() for msg in messages]


def _build_tool_choice(tool_choice: ToolChoice) -> str | dict[str, Any]:
    if isinstance(tool_choice, PinnedTool):
        return {"type": "function", "function": {"name": tool_choice.name}}
    return tool_choice


class OpenAIProvider:
    """Provider adapter for OpenAI's chat completions API.

    The SDK's own retries are disabled; retry policy belongs to the
    completion invoker.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        if client is not None:
            self._client = client
        else:
            kwargs: dict[str, Any] = {"timeout": timeout, "max_retries": 0}
            if api_key is not None:
                kwargs["api_key"] = api_key
            if base_url is not None:
                kwargs["base_url"] = base_url
            self._client = openai.AsyncOpenAI(**kwargs)

    @property
    def provider_id(self) -> str:
        return PROVIDER_ID

    async def send(
        self,
        messages: list[Message],
        model_id: str,
        *,
        max_tokens: int = 4096,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> CompletionResponse:
        kwargs: dict[str, Any] = {
            "model": model_id,
            "max_completion_tokens": max_tokens,
            "messages": _build_messages(messages),
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = _build_tool_choice(tool_choice or "auto")

        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise _map_error(e) from e

        latency_ms = (time.monotonic() - start) * 1000

        if not response.choices:
            msg = "No response message received"
            raise ProviderError(PROVIDER_ID, msg)

        choice = response.choices[0]
        tool_calls: list[ToolCallRequest] | None = None
        if choice.message.tool_calls:
            tool_calls = [
                ToolCallRequest(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=tc.function.arguments,
                )
                for tc in choice.message.tool_calls
            ]

        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )
        else:
            usage = TokenUsage(input_tokens=0, output_tokens=0)

        return CompletionResponse(
            content=choice.message.content,
            model_id=model_id,
            usage=usage,
            finish_reason=choice.finish_reason or "stop",
            latency_ms=latency_ms,
            tool_calls=tool_calls,
            raw_response=response,
        )
