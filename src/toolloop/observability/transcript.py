"""Conversation transcripts: export as JSON or Markdown, read JSON back."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from toolloop.core.errors import TranscriptError

if TYPE_CHECKING:
    from pathlib import Path

    from toolloop.agent.result import ExecutionResult

logger = logging.getLogger(__name__)

TranscriptFormat = Literal["json", "markdown"]


def generate_conversation_id(command: str) -> str:
    """Return ``<command>-<timestamp>`` safe for use as a file name."""
    stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{command}-{stamp}"


def transcript_to_dict(
    result: ExecutionResult,
    conversation_id: str,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "id": conversation_id,
        "timestamp": datetime.now(UTC).isoformat(),
        "iterations": result.iterations,
        "tool_calls_executed": result.tool_calls_executed,
        "forced_synthesis": result.forced_synthesis,
        "messages": [m.to_dict() for m in result.conversation_history],
        "metadata": metadata or {},
    }


def transcript_to_markdown(
    result: ExecutionResult,
    conversation_id: str,
    metadata: dict[str, Any] | None = None,
) -> str:
    lines = [f"# Conversation: {conversation_id}", ""]
    if metadata:
        lines.extend(
            ["## Metadata", "```json", json.dumps(metadata, indent=2), "```", ""]
        )
    lines.extend(["## Messages", ""])
    for i, msg in enumerate(result.conversation_history, start=1):
        heading = f"### Message {i}: {msg.role}"
        if msg.role == "tool" and msg.name:
            heading += f" ({msg.name})"
        lines.extend([heading, ""])
        lines.append(msg.content or "(no content)")
        for call in msg.tool_calls or ():
            lines.append(f"- requested `{call.name}` with `{call.arguments}`")
        lines.append("")
    return "\n".join(lines)


def save_transcript(
    result: ExecutionResult,
    path: Path,
    *,
    fmt: TranscriptFormat = "json",
    conversation_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Path:
    """Write the transcript of ``result`` to ``path`` and return it."""
    cid = conversation_id or path.stem
    if fmt == "json":
        content = json.dumps(transcript_to_dict(result, cid, metadata), indent=2)
    else:
        content = transcript_to_markdown(result, cid, metadata)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.debug("Logged conversation %s to %s", cid, path)
    return path


def load_transcript(path: Path) -> dict[str, Any]:
    """Read back a transcript written by :func:`save_transcript` in JSON form."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Cannot read transcript {path}: {e}"
        raise TranscriptError(msg) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse transcript JSON in {path}: {e}"
        raise TranscriptError(msg) from e
    if not isinstance(data, dict):
        msg = f"Transcript {path} is not a JSON object"
        raise TranscriptError(msg)
    logger.info("Loaded conversation %s", data.get("id", path.stem))
    return data


def transcript_summary(path: Path) -> dict[str, Any]:
    """Return id, timestamp, message count and metadata of a saved transcript."""
    data = load_transcript(path)
    return {
        "id": data.get("id"),
        "timestamp": data.get("timestamp"),
        "message_count": len(data.get("messages") or []),
        "metadata": data.get("metadata") or {},
    }
