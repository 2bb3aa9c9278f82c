"""Agentic tool-calling loop."""

from toolloop.agent.executor import (
    FORCED_SYNTHESIS_PROMPT,
    AgenticExecutor,
    run_agentic,
)
from toolloop.agent.result import ExecutionResult, ToolExecutionMetric

__all__ = [
    "FORCED_SYNTHESIS_PROMPT",
    "AgenticExecutor",
    "ExecutionResult",
    "ToolExecutionMetric",
    "run_agentic",
]
