"""Retryable completion invocation and debug capture."""

from toolloop.completion.capture import DebugCapture, DirectoryCapture
from toolloop.completion.invoker import CompletionInvoker, check_tool_choice

__all__ = [
    "CompletionInvoker",
    "DebugCapture",
    "DirectoryCapture",
    "check_tool_choice",
]
