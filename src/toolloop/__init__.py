"""toolloop - bounded agentic tool-calling loop for LLMs."""

from toolloop.agent import AgenticExecutor, ExecutionResult, ToolExecutionMetric, run_agentic
from toolloop.completion import CompletionInvoker
from toolloop.providers.base import Message, PinnedTool, ToolCallRequest
from toolloop.tools import ToolContext, ToolRegistry

__version__ = "0.1.0"

__all__ = [
    "AgenticExecutor",
    "CompletionInvoker",
    "ExecutionResult",
    "Message",
    "PinnedTool",
    "ToolCallRequest",
    "ToolContext",
    "ToolExecutionMetric",
    "ToolRegistry",
    "__version__",
    "run_agentic",
]
