"""Tests for Anthropic provider adapter (mocked SDK)."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import anthropic
import pytest

from toolloop.core.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderTokenLimitError,
)
from toolloop.providers.anthropic import (
    PROVIDER_ID,
    AnthropicProvider,
    _build_messages,
    _build_tool_choice,
    _build_tools,
    _map_error,
)
from toolloop.providers.base import (
    Message,
    ModelProvider,
    PinnedTool,
    ToolCallRequest,
)

# ─── Helpers ──────────────────────────────────────────────────

WEATHER_TOOL = {
    "type": "function",
    "function": {
        "name": "get_weather",
        "description": "Weather for a city",
        "parameters": {
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
    },
}


def _make_usage(input_tokens: int = 100, output_tokens: int = 50) -> MagicMock:
    usage = MagicMock()
    usage.input_tokens = input_tokens
    usage.output_tokens = output_tokens
    return usage


def _text_block(text: str) -> MagicMock:
    block = MagicMock()
    block.type = "text"
    block.text = text
    return block


def _tool_block(block_id: str, name: str, tool_input: dict[str, Any]) -> MagicMock:
    block = MagicMock()
    block.type = "tool_use"
    block.id = block_id
    block.name = name
    block.input = tool_input
    return block


def _make_response(
    blocks: list[MagicMock] | None = None,
    stop_reason: str = "end_turn",
) -> MagicMock:
    response = MagicMock()
    response.content = blocks if blocks is not None else [_text_block("Hello world")]
    response.usage = _make_usage()
    response.stop_reason = stop_reason
    return response


def _make_client(response: Any = None) -> MagicMock:
    """Create a mocked AsyncAnthropic client."""
    client = MagicMock(spec=anthropic.AsyncAnthropic)
    client.messages = MagicMock()
    client.messages.create = AsyncMock(return_value=response or _make_response())
    return client


def _make_api_error(
    cls: type, status_code: int = 400, message: str = "test error"
) -> anthropic.APIError:
    response = MagicMock()
    response.status_code = status_code
    response.headers = {}
    return cls(message=message, response=response, body=None)


# ─── Protocol ─────────────────────────────────────────────────


class TestProtocol:
    def test_provider_id(self):
        provider = AnthropicProvider(client=_make_client())
        assert provider.provider_id == PROVIDER_ID

    def test_satisfies_protocol(self):
        assert isinstance(AnthropicProvider(client=_make_client()), ModelProvider)


# ─── Message building ────────────────────────────────────────


class TestBuildMessages:
    def test_system_extracted_and_joined(self):
        system, msgs = _build_messages(
            [Message.system("one"), Message.system("two"), Message.user("hi")]
        )
        assert system == "one\n\ntwo"
        assert msgs == [{"role": "user", "content": "hi"}]

    def test_no_system(self):
        system, _ = _build_messages([Message.user("hi")])
        assert system is anthropic.NOT_GIVEN

    def test_tool_use_and_results(self):
        calls = [
            ToolCallRequest("t1", "get_weather", '{"city": "Paris"}'),
            ToolCallRequest("t2", "get_weather", '{"city": "Rome"}'),
        ]
        _, msgs = _build_messages(
            [
                Message.user("Weather?"),
                Message.assistant("Checking.", calls),
                Message.tool("t1", "Sunny", "get_weather"),
                Message.tool("t2", "Rainy", "get_weather"),
            ]
        )
        assert len(msgs) == 3
        assistant = msgs[1]
        assert assistant["role"] == "assistant"
        assert assistant["content"][0] == {"type": "text", "text": "Checking."}
        assert assistant["content"][1] == {
            "type": "tool_use",
            "id": "t1",
            "name": "get_weather",
            "input": {"city": "Paris"},
        }
        results = msgs[2]
        assert results["role"] == "user"
        assert [b["tool_use_id"] for b in results["content"]] == ["t1", "t2"]
        assert results["content"][1]["content"] == "Rainy"

    def test_malformed_arguments_preserved(self):
        calls = [ToolCallRequest("t1", "x", "{not json")]
        _, msgs = _build_messages([Message.assistant(None, calls)])
        assert msgs[0]["content"][0]["input"] == {"_raw": "{not json"}

    def test_empty_arguments(self):
        calls = [ToolCallRequest("t1", "x", "")]
        _, msgs = _build_messages([Message.assistant(None, calls)])
        assert msgs[0]["content"][0]["input"] == {}


class TestBuildTools:
    def test_converts_function_shape(self):
        assert _build_tools([WEATHER_TOOL]) == [
            {
                "name": "get_weather",
                "description": "Weather for a city",
                "input_schema": WEATHER_TOOL["function"]["parameters"],
            }
        ]

    def test_tool_choice(self):
        assert _build_tool_choice("auto") == {"type": "auto"}
        assert _build_tool_choice("required") == {"type": "any"}
        assert _build_tool_choice("none") == {"type": "none"}
        assert _build_tool_choice(PinnedTool("get_weather")) == {
            "type": "tool",
            "name": "get_weather",
        }


# ─── send ─────────────────────────────────────────────────────


class TestSend:
    async def test_returns_text(self):
        provider = AnthropicProvider(client=_make_client())
        resp = await provider.send([Message.user("Hi")], "claude-sonnet-4-5")
        assert resp.content == "Hello world"
        assert resp.finish_reason == "end_turn"
        assert resp.tool_calls is None
        assert resp.usage.total_tokens == 150

    async def test_request_kwargs(self):
        client = _make_client()
        provider = AnthropicProvider(client=client)
        await provider.send(
            [Message.system("sys"), Message.user("Hi")],
            "claude-sonnet-4-5",
            max_tokens=500,
            tools=[WEATHER_TOOL],
            tool_choice="required",
        )
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == 500
        assert kwargs["tools"][0]["name"] == "get_weather"
        assert kwargs["tool_choice"] == {"type": "any"}

    async def test_no_tools_omits_tool_choice(self):
        client = _make_client()
        provider = AnthropicProvider(client=client)
        await provider.send([Message.user("Hi")], "claude-sonnet-4-5")
        kwargs = client.messages.create.call_args.kwargs
        assert "tools" not in kwargs
        assert "tool_choice" not in kwargs

    async def test_parses_tool_use(self):
        response = _make_response(
            [_text_block("Let me check."), _tool_block("t1", "get_weather", {"city": "Paris"})],
            stop_reason="tool_use",
        )
        provider = AnthropicProvider(client=_make_client(response))
        resp = await provider.send([Message.user("Weather?")], "claude-sonnet-4-5")
        assert resp.content == "Let me check."
        assert resp.tool_calls == [
            ToolCallRequest("t1", "get_weather", json.dumps({"city": "Paris"}))
        ]

    async def test_tool_use_only(self):
        response = _make_response([_tool_block("t1", "get_weather", {})])
        provider = AnthropicProvider(client=_make_client(response))
        resp = await provider.send([Message.user("Weather?")], "claude-sonnet-4-5")
        assert resp.content is None
        assert resp.has_tool_calls

    async def test_sdk_error_mapped(self):
        client = _make_client()
        client.messages.create = AsyncMock(
            side_effect=_make_api_error(anthropic.AuthenticationError, 401)
        )
        provider = AnthropicProvider(client=client)
        with pytest.raises(ProviderAuthError):
            await provider.send([Message.user("Hi")], "claude-sonnet-4-5")


# ─── Error mapping ───────────────────────────────────────────


class TestErrorMapping:
    def test_rate_limit_with_retry_after(self):
        err = _make_api_error(anthropic.RateLimitError, 429)
        err.response.headers = {"retry-after": "30"}
        mapped = _map_error(err)
        assert isinstance(mapped, ProviderRateLimitError)
        assert mapped.retry_after == 30.0

    def test_timeout_error(self):
        err = anthropic.APITimeoutError(request=MagicMock())
        assert isinstance(_map_error(err), ProviderTimeoutError)

    def test_prompt_too_long(self):
        err = _make_api_error(
            anthropic.BadRequestError,
            400,
            message="prompt is too long: 210000 tokens > 200000 maximum",
        )
        assert isinstance(_map_error(err), ProviderTokenLimitError)

    def test_server_error_is_other(self):
        err = _make_api_error(anthropic.InternalServerError, 500)
        mapped = _map_error(err)
        assert type(mapped) is ProviderError
