"""Run results and per-tool execution metrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolloop.providers.base import Message


@dataclass(frozen=True, slots=True)
class ToolExecutionMetric:
    """One tool dispatch. Recorded for observability only."""

    name: str
    iteration: int  # 1-based
    success: bool
    duration_ms: float
    timestamp: str  # ISO-8601, UTC
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Snapshot returned by :meth:`AgenticExecutor.run`."""

    final_message: str
    iterations: int
    tool_calls_executed: int
    conversation_history: tuple[Message, ...]
    tool_metrics: tuple[ToolExecutionMetric, ...]
    forced_synthesis: bool = False
