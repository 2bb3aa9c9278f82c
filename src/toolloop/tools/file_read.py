"""File tools: read files and list directories safely.

Paths are resolved against the registry context's working directory
(or the process cwd), with traversal protection, binary rejection, and
size limits.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from toolloop.tools.schema import ObjectSchema, Parameter, ParamType

if TYPE_CHECKING:
    from toolloop.tools.base import ToolContext

MAX_FILE_SIZE = 100 * 1024  # 100KB
MAX_LIST_ENTRIES = 500


def _root(context: ToolContext | None) -> Path:
    if context is not None and context.working_directory is not None:
        return Path(context.working_directory).resolve()
    return Path.cwd().resolve()


def _is_within(path: Path, directory: Path) -> bool:
    """Check if path is within directory."""
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


def _resolve(path_str: str, root: Path) -> Path:
    """Resolve ``path_str`` under ``root``, rejecting escapes."""
    normalized = os.path.normpath(path_str)
    if ".." in normalized.split(os.sep):
        msg = f"Path traversal not allowed: {path_str}"
        raise ValueError(msg)

    resolved = (root / path_str).resolve()
    if not _is_within(resolved, root):
        msg = f"Path is outside the working directory: {path_str}"
        raise ValueError(msg)
    return resolved


def _is_binary(path: Path) -> bool:
    """Check if a file appears to be binary."""
    try:
        with path.open("rb") as f:
            chunk = f.read(8192)
    except OSError:
        return True
    return b"\x00" in chunk


class ReadFileTool:
    """Reads a text file inside the working directory.

    Implements the :class:`Tool` protocol.
    """

    name = "read_file"
    description = "Read the contents of a text file in the working directory."
    parameters = ObjectSchema(
        properties={
            "path": Parameter(
                ParamType.STRING,
                "Path to the file, relative to the working directory.",
            ),
        },
        required=("path",),
    )

    async def execute(self, params: dict[str, Any], context: ToolContext | None) -> str:
        path_str = params["path"]
        if not path_str:
            msg = "Parameter 'path' must be a non-empty string."
            raise ValueError(msg)

        resolved = _resolve(path_str, _root(context))

        if not resolved.exists():
            msg = f"File not found: {path_str}"
            raise FileNotFoundError(msg)

        if not resolved.is_file():
            msg = f"Not a regular file: {path_str}"
            raise ValueError(msg)

        size = resolved.stat().st_size
        if size > MAX_FILE_SIZE:
            msg = (
                f"File too large: {size} bytes "
                f"(max {MAX_FILE_SIZE} bytes / {MAX_FILE_SIZE // 1024}KB)"
            )
            raise ValueError(msg)

        if _is_binary(resolved):
            msg = f"Binary file cannot be read as text: {path_str}"
            raise ValueError(msg)

        return resolved.read_text(encoding="utf-8")


class ListFilesTool:
    """Lists entries of a directory inside the working directory."""

    name = "list_files"
    description = (
        "List files in a directory of the working directory. "
        "Directories are shown with a trailing slash."
    )
    parameters = ObjectSchema(
        properties={
            "path": Parameter(
                ParamType.STRING,
                "Directory to list, relative to the working directory.",
                default=".",
            ),
            "recursive": Parameter(
                ParamType.BOOLEAN,
                "Walk subdirectories as well.",
                default=False,
            ),
        },
    )

    async def execute(
        self, params: dict[str, Any], context: ToolContext | None
    ) -> list[str]:
        root = _root(context)
        directory = _resolve(params["path"], root)
        if not directory.is_dir():
            msg = f"Not a directory: {params['path']}"
            raise NotADirectoryError(msg)

        pattern = "**/*" if params["recursive"] else "*"
        entries: list[str] = []
        for entry in sorted(directory.glob(pattern)):
            if any(part.startswith(".") for part in entry.relative_to(directory).parts):
                continue
            rel = entry.relative_to(root).as_posix()
            entries.append(f"{rel}/" if entry.is_dir() else rel)
            if len(entries) >= MAX_LIST_ENTRIES:
                break
        return entries


def builtin_tools() -> list[ReadFileTool | ListFilesTool]:
    """The generic tools shipped with toolloop."""
    return [ReadFileTool(), ListFilesTool()]
