"""Provider adapter interface and conversation data classes.

All provider adapters implement the ``ModelProvider`` protocol.
Data classes are immutable (frozen dataclasses with slots) so a
message can never change after it joins a conversation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True, slots=True)
class ToolCallRequest:
    """A tool call emitted by the model inside an assistant turn."""

    id: str
    name: str
    arguments: str  # Raw JSON string, not yet parsed

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True, slots=True)
class Message:
    """A single turn in a conversation."""

    role: Role
    content: str | None
    tool_calls: tuple[ToolCallRequest, ...] | None = None
    tool_call_id: str | None = None  # Only on tool turns
    name: str | None = None  # Tool name on tool turns

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: str | None,
        tool_calls: Sequence[ToolCallRequest] | None = None,
    ) -> Message:
        return cls(
            role="assistant",
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls else None,
        )

    @classmethod
    def tool(cls, tool_call_id: str, content: str, name: str | None = None) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)

    def to_dict(self) -> dict[str, Any]:
        """Render in the OpenAI chat-completions message shape."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass(slots=True)
class CompletionResponse:
    """Complete response from a model call.

    Either a final answer (``tool_calls`` empty) or a request for tool
    execution, possibly with accompanying text.
    """

    content: str | None
    model_id: str
    usage: TokenUsage
    finish_reason: str  # "stop", "length", "tool_calls"
    latency_ms: float
    tool_calls: list[ToolCallRequest] | None = None
    raw_response: object = field(default=None, repr=False)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True, slots=True)
class PinnedTool:
    """Tool-choice policy forcing one specific tool."""

    name: str


ToolChoice = Literal["auto", "none", "required"] | PinnedTool


@runtime_checkable
class ModelProvider(Protocol):
    """Protocol that all provider adapters must satisfy.

    Implementations are stateless: they hold connection config but no
    conversation state. Failures surface only as ``ProviderError``
    subclasses, already classified.
    """

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai', 'anthropic')."""
        ...

    async def send(
        self,
        messages: list[Message],
        model_id: str,
        *,
        max_tokens: int = 4096,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> CompletionResponse:
        """Send a conversation and wait for the complete response.

        Args:
            messages: Conversation so far.
            model_id: Model to use.
            max_tokens: Max output tokens.
            tools: Tool definitions in the OpenAI function shape.
            tool_choice: Tool-choice policy; only sent alongside tools.

        Raises ProviderError on failure.
        """
        ...
