"""Run reports, metric summaries and transcript export."""

from toolloop.observability.metrics import ToolStats, summarize_metrics
from toolloop.observability.reflection import (
    generate_reflection_report,
    save_reflection_report,
)
from toolloop.observability.transcript import (
    generate_conversation_id,
    save_transcript,
    transcript_to_dict,
    transcript_to_markdown,
)

__all__ = [
    "ToolStats",
    "generate_conversation_id",
    "generate_reflection_report",
    "save_reflection_report",
    "save_transcript",
    "summarize_metrics",
    "transcript_to_dict",
    "transcript_to_markdown",
]
