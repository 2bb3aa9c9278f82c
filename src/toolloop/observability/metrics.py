"""Aggregate statistics over tool execution metrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from toolloop.agent.result import ToolExecutionMetric

SLOW_TOOL_THRESHOLD_MS = 1000.0


@dataclass(slots=True)
class ToolStats:
    """Per-tool totals across one or more runs."""

    name: str
    calls: int = 0
    successes: int = 0
    failures: int = 0
    total_duration_ms: float = 0.0

    @property
    def avg_duration_ms(self) -> float:
        return self.total_duration_ms / self.calls if self.calls else 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.calls if self.calls else 0.0

    @property
    def is_slow(self) -> bool:
        return self.calls > 0 and self.avg_duration_ms > SLOW_TOOL_THRESHOLD_MS


def summarize_metrics(metrics: Iterable[ToolExecutionMetric]) -> dict[str, ToolStats]:
    """Group metrics by tool name, most-called first."""
    stats: dict[str, ToolStats] = {}
    for metric in metrics:
        entry = stats.setdefault(metric.name, ToolStats(name=metric.name))
        entry.calls += 1
        entry.total_duration_ms += metric.duration_ms
        if metric.success:
            entry.successes += 1
        else:
            entry.failures += 1
    # Stable sort keeps first-seen order among ties
    ordered = sorted(stats.values(), key=lambda s: s.calls, reverse=True)
    return {s.name: s for s in ordered}
