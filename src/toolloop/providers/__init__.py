"""LLM provider adapters."""

from toolloop.providers.base import (
    CompletionResponse,
    Message,
    ModelProvider,
    PinnedTool,
    TokenUsage,
    ToolCallRequest,
    ToolChoice,
)
from toolloop.providers.classify import classify_error
from toolloop.providers.manager import ProviderManager

__all__ = [
    "CompletionResponse",
    "Message",
    "ModelProvider",
    "PinnedTool",
    "ProviderManager",
    "TokenUsage",
    "ToolCallRequest",
    "ToolChoice",
    "classify_error",
]
