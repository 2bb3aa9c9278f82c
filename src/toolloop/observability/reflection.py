"""Self-reflection reports for agentic runs.

Renders an :class:`ExecutionResult` as a Markdown report: execution
summary, tool effectiveness, performance insights, recommendations and
a per-call timeline.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from toolloop.observability.metrics import ToolStats, summarize_metrics

if TYPE_CHECKING:
    from pathlib import Path

    from toolloop.agent.result import ExecutionResult

logger = logging.getLogger(__name__)


def generate_reflection_report(
    result: ExecutionResult,
    max_iterations: int,
    *,
    include_conversation: bool = False,
) -> str:
    """Build a Markdown report describing how a run went."""
    stats = summarize_metrics(result.tool_metrics)
    max_reached = result.forced_synthesis

    lines: list[str] = [
        "# Agentic Run - Self-Reflection Report",
        "",
        f"Generated: {datetime.now(UTC).isoformat()}",
        "",
        "## Execution Summary",
        "",
        f"- **Iterations**: {result.iterations}{' (max reached)' if max_reached else ''}",
        f"- **Tool Calls**: {result.tool_calls_executed}",
        f"- **Unique Tools**: {len(stats)}",
        f"- **Forced Synthesis**: {'yes' if result.forced_synthesis else 'no'}",
        "",
        "## Tool Effectiveness Analysis",
        "",
    ]

    if not stats:
        lines.append("*No tools were executed during this run.*")
    else:
        lines.append(
            "| Tool | Calls | Success | Failures | Success Rate | Avg Duration |"
        )
        lines.append(
            "|------|-------|---------|----------|--------------|--------------|"
        )
        for s in stats.values():
            lines.append(
                f"| {s.name} | {s.calls} | {s.successes} | {s.failures} "
                f"| {s.success_rate * 100:.1f}% | {s.avg_duration_ms:.0f}ms |"
            )
    lines.append("")

    if stats:
        lines.extend(_performance_insights(stats))

    lines.extend(["## Recommendations for Improvement", ""])
    recommendations = _recommendations(
        result, stats, max_iterations if max_reached else None
    )
    if recommendations:
        lines.extend(recommendations)
    else:
        lines.append(
            "*No specific recommendations at this time. Execution appears optimal.*"
        )
    lines.append("")

    lines.extend(["## Detailed Execution Timeline", ""])
    if not result.tool_metrics:
        lines.append("*No tool execution timeline available.*")
    else:
        lines.append("| Time | Iteration | Tool | Result | Duration |")
        lines.append("|------|-----------|------|--------|----------|")
        for m in result.tool_metrics:
            outcome = "Success" if m.success else f"Failed: {m.error or 'unknown error'}"
            lines.append(
                f"| {_clock(m.timestamp)} | {m.iteration} | {m.name} "
                f"| {outcome} | {m.duration_ms:.0f}ms |"
            )
    lines.append("")

    if include_conversation and result.conversation_history:
        history = [m.to_dict() for m in result.conversation_history]
        lines.extend(
            [
                "## Conversation History",
                "",
                "<details>",
                "<summary>Full agentic interaction</summary>",
                "",
                "```json",
                json.dumps(history, indent=2),
                "```",
                "",
                "</details>",
                "",
            ]
        )

    lines.extend(["## Final Answer", "", result.final_message or "(empty)", ""])

    logger.debug("Generated reflection report with %d unique tools", len(stats))
    return "\n".join(lines)


def save_reflection_report(report: str, path: Path) -> None:
    """Write a report to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report, encoding="utf-8")


def _clock(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%H:%M:%S")
    except ValueError:
        return timestamp


def _performance_insights(stats: dict[str, ToolStats]) -> list[str]:
    lines = ["### Tool Performance Insights", ""]

    failed = [s for s in stats.values() if s.failures]
    if failed:
        lines.append("**Tools with Failures:**")
        for s in failed:
            rate = s.failures / s.calls * 100
            lines.append(f"- {s.name}: {s.failures}/{s.calls} failures ({rate:.1f}%)")
        lines.append("")

    slow = sorted(
        (s for s in stats.values() if s.is_slow),
        key=lambda s: s.avg_duration_ms,
        reverse=True,
    )
    if slow:
        lines.append("**Slow Tools (>1s average):**")
        for s in slow:
            lines.append(f"- {s.name}: {s.avg_duration_ms / 1000:.2f}s average")
        lines.append("")

    lines.append("**Most Frequently Used:**")
    for s in list(stats.values())[:3]:
        lines.append(f"- {s.name}: {s.calls} calls")
    lines.append("")
    return lines


def _recommendations(
    result: ExecutionResult,
    stats: dict[str, ToolStats],
    exhausted_limit: int | None,
) -> list[str]:
    recs: list[str] = []
    if any(s.failures for s in stats.values()):
        recs.append(
            "- **Tool Failures**: Investigate failing tools; the model had to "
            "work from error text instead of results."
        )
    if any(s.is_slow for s in stats.values()):
        recs.append(
            "- **Performance**: Consider optimizing slow tools or caching results."
        )
    if exhausted_limit is not None:
        recs.append(
            f"- **Max Iterations Reached**: The agent used all {exhausted_limit} "
            "iterations without a final answer and was forced to synthesize. "
            "Raise the limit or make tools return more complete answers."
        )
    if sum(1 for s in stats.values() if s.calls == 1) > 3:
        recs.append(
            "- **Underutilized Tools**: Many tools were called only once. Check "
            "whether every tool is needed."
        )
    if len(stats) == 1 and result.tool_calls_executed > 3:
        recs.append(
            "- **Low Tool Diversity**: Only one tool was used across many calls."
        )
    return recs
