"""Rich display for agentic runs.

Renders the final answer, run statistics and per-tool metrics, and
lists available tools and saved transcripts.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from toolloop.observability.metrics import summarize_metrics

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.status import Status

    from toolloop.agent.result import ExecutionResult
    from toolloop.tools.base import ToolDefinition


class RunDisplay:
    """Rich display for a single agentic run.

    Accepts an optional :class:`~rich.console.Console` for dependency
    injection in tests.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._start_time: float = 0.0

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self) -> None:
        """Record the start time for elapsed calculations."""
        self._start_time = time.monotonic()

    @property
    def elapsed(self) -> float:
        """Seconds elapsed since :meth:`start` was called."""
        if self._start_time == 0.0:
            return 0.0
        return time.monotonic() - self._start_time

    def status(self, model_ref: str) -> Status:
        """Spinner shown while the loop runs."""
        return self._console.status(
            f"[bold cyan]Investigating[/bold cyan] ({model_ref})...",
            spinner="dots",
        )

    # ── Results ───────────────────────────────────────────────

    def show_result(self, result: ExecutionResult, max_iterations: int) -> None:
        """Display the final answer followed by run statistics."""
        self._console.print(
            Panel(
                result.final_message or "(empty answer)",
                title="[bold green]ANSWER[/bold green]",
                border_style="green",
            )
        )
        parts = [
            f"{result.iterations}/{max_iterations} iterations",
            f"{result.tool_calls_executed} tool calls",
            f"{self.elapsed:.1f}s",
        ]
        if result.forced_synthesis:
            parts.append("forced synthesis")
        self._console.print(" | ".join(parts), style="dim")

    def show_metrics(self, result: ExecutionResult) -> None:
        """Display per-tool statistics as a table."""
        stats = summarize_metrics(result.tool_metrics)
        if not stats:
            self._console.print("No tools were executed.", style="dim")
            return

        table = Table(title="Tool metrics")
        table.add_column("Tool", style="bold")
        table.add_column("Calls", justify="right")
        table.add_column("Failures", justify="right")
        table.add_column("Success", justify="right")
        table.add_column("Avg", justify="right")
        for s in stats.values():
            table.add_row(
                s.name,
                str(s.calls),
                f"[red]{s.failures}[/red]" if s.failures else "0",
                f"{s.success_rate:.0%}",
                f"{s.avg_duration_ms:.0f}ms",
            )
        self._console.print(table)

    def show_tools(self, definitions: Sequence[ToolDefinition]) -> None:
        """List tool names, descriptions and parameters."""
        table = Table(title="Available tools")
        table.add_column("Name", style="bold")
        table.add_column("Description")
        table.add_column("Parameters")
        for d in definitions:
            params = []
            for name, p in d.parameters.properties.items():
                marker = "*" if name in d.parameters.required else ""
                params.append(f"{name}{marker}: {p.type.value}")
            table.add_row(d.name, d.description, ", ".join(params) or "-")
        self._console.print(table)

    def show_report(self, report: str) -> None:
        """Render a Markdown reflection report."""
        self._console.print(Markdown(report))

    def show_transcript_summary(self, summary: dict[str, Any]) -> None:
        """Print the header fields of a saved transcript."""
        table = Table(show_header=False, box=None)
        table.add_column(style="bold")
        table.add_column()
        table.add_row("ID", str(summary["id"]))
        table.add_row("Timestamp", str(summary["timestamp"]))
        table.add_row("Messages", str(summary["message_count"]))
        for key, value in summary["metadata"].items():
            table.add_row(key, str(value))
        self._console.print(table)
