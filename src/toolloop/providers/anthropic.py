"""Anthropic (Claude) provider adapter."""

from __future__ import annotations

import contextlib
import json
import time
from typing import TYPE_CHECKING, Any

import anthropic

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

PROVIDER_ID = "anthropic"

DEFAULT_TIMEOUT = 300.0


def _map_error(e: anthropic.APIError) -> ProviderError:
    """Map Anthropic SDK errors to the toolloop error hierarchy."""
    if isinstance(e, anthropic.APITimeoutError):
        return ProviderTimeoutError(PROVIDER_ID, str(e))
    if isinstance(e, anthropic.AuthenticationError):
        return ProviderAuthError(PROVIDER_ID, str(e))

    status_code = None
    retry_after = None
    if isinstance(e, anthropic.APIStatusError):
        status_code = e.status_code
        raw = e.response.headers.get("retry-after") if e.response is not None else None
        if raw is not None:
            with contextlib.suppress(ValueError):
                retry_after = float(raw)
    kind = classify_error(status_code, None, str(e))
    return error_for_kind(kind, PROVIDER_ID, str(e), retry_after=retry_after)


def _parse_arguments(raw: str) -> Any:
    # Anthropic wants tool input as an object; keep malformed text visible
    try:
        return json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        return {"_raw": raw}


def _build_messages(
    messages: list[Message],
) -> tuple[str | anthropic.NotGiven, list[dict[str, Any]]]:
    """Split Messages into Anthropic's system + messages format.

    Assistant tool calls become ``tool_use`` blocks; consecutive tool
    results are folded into a single user turn of ``tool_result`` blocks.
    """
    system_parts: list[str] = []
    api_messages: list[dict[str, Any]] = []

    for msg in messages:
        if msg.role == "system":
            system_parts.append(msg.content or "")
        elif msg.role == "tool":
            block = {
                "type": "tool_result",
                "tool_use_id": msg.tool_call_id,
                "content": msg.content or "",
            }
            last = api_messages[-1] if api_messages else None
            if (
                last is not None
                and last["role"] == "user"
                and isinstance(last["content"], list)
                and all(b.get("type") == "tool_result" for b in last["content"])
            ):
                last["content"].append(block)
            else:
                api_messages.append({"role": "user", "content": [block]})
        elif msg.role == "assistant" and msg.tool_calls:
            blocks: list[dict[str, Any]] = []
            if msg.content:
                blocks.append({"type": "text", "text": msg.content})
            for tc in msg.tool_calls:
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": _parse_arguments(tc.arguments),
                    }
                )
            api_messages.append({"role": "assistant", "content": blocks})
        else:
            api_messages.append({"role": msg.role, "content": msg.content or ""})

    system: str | anthropic.NotGiven = (
        "\n\n".join(system_parts) if system_parts else anthropic.NOT_GIVEN
    )
    return system, api_messages


def _build_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert OpenAI-shaped function tools to Anthropic tool definitions."""
    converted: list[dict[str, Any]] = []
    for t in tools:
        fn = t.get("function", t)
        converted.append(
            {
                "name": fn["name"],
                "description": fn.get("description", ""),
                "input_schema": fn.get("parameters", {"type": "object"}),
            }
        )
    return converted


def _build_tool_choice(tool_choice: ToolChoice) -> dict[str, Any]:
    if isinstance(tool_choice, PinnedTool):
        return {"type": "tool", "name": tool_choice.name}
    if tool_choice == "required":
        return {"type": "any"}
    return {"type": tool_choice}


class AnthropicProvider:
    """Provider adapter for Anthropic's Claude models."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

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
        system, api_messages = _build_messages(messages)

        kwargs: dict[str, Any] = {
            "model": model_id,
            "max_tokens": max_tokens,
            "system": system,
            "messages": api_messages,
        }
        if tools:
            kwargs["tools"] = _build_tools(tools)
            kwargs["tool_choice"] = _build_tool_choice(tool_choice or "auto")

        start = time.monotonic()
        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise _map_error(e) from e

        latency_ms = (time.monotonic() - start) * 1000

        # Extract text content and tool use blocks
        text_parts: list[str] = []
        tool_calls: list[ToolCallRequest] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(
                        id=block.id,
                        name=block.name,
                        arguments=json.dumps(block.input),
                    )
                )

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

        return CompletionResponse(
            content="".join(text_parts) if text_parts else None,
            model_id=model_id,
            usage=usage,
            finish_reason=response.stop_reason or "stop",
            latency_ms=latency_ms,
            tool_calls=tool_calls or None,
            raw_response=response,
        )
