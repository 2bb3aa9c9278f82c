"""Tests for the built-in file tools."""

from __future__ import annotations

import pytest

from toolloop.core.errors import ToolArgumentError, ToolExecutionError
from toolloop.tools.base import Tool, ToolContext
from toolloop.tools.file_read import (
    MAX_FILE_SIZE,
    ListFilesTool,
    ReadFileTool,
    builtin_tools,
)


class TestBuiltinTools:
    def test_names(self):
        assert [t.name for t in builtin_tools()] == ["read_file", "list_files"]

    def test_satisfy_protocol(self):
        assert all(isinstance(t, Tool) for t in builtin_tools())


# ── read_file ─────────────────────────────────────────────────


class TestReadFile:
    async def test_reads_text(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        assert await ReadFileTool().execute({"path": "README.md"}, ctx) == "# Demo\n"

    async def test_nested_path(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        text = await ReadFileTool().execute({"path": "src/main.py"}, ctx)
        assert "print" in text

    async def test_traversal_rejected(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(ValueError, match="traversal"):
            await ReadFileTool().execute({"path": "../etc/passwd"}, ctx)

    async def test_absolute_path_outside_rejected(self, workdir):
        ctx = ToolContext(working_directory=workdir / "src")
        with pytest.raises(ValueError, match="outside"):
            await ReadFileTool().execute({"path": str(workdir / "README.md")}, ctx)

    async def test_missing_file(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(FileNotFoundError):
            await ReadFileTool().execute({"path": "nope.txt"}, ctx)

    async def test_directory_rejected(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(ValueError, match="Not a regular file"):
            await ReadFileTool().execute({"path": "src"}, ctx)

    async def test_binary_rejected(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(ValueError, match="Binary"):
            await ReadFileTool().execute({"path": "blob.bin"}, ctx)

    async def test_too_large(self, workdir):
        (workdir / "big.txt").write_text("x" * (MAX_FILE_SIZE + 1))
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(ValueError, match="too large"):
            await ReadFileTool().execute({"path": "big.txt"}, ctx)

    async def test_empty_path(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(ValueError, match="non-empty"):
            await ReadFileTool().execute({"path": ""}, ctx)


# ── list_files ────────────────────────────────────────────────


class TestListFiles:
    async def test_top_level(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        entries = await ListFilesTool().execute({"path": ".", "recursive": False}, ctx)
        assert entries == ["README.md", "blob.bin", "src/"]

    async def test_recursive(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        entries = await ListFilesTool().execute({"path": ".", "recursive": True}, ctx)
        assert "src/main.py" in entries
        assert ".hidden" not in entries

    async def test_subdirectory_paths_relative_to_root(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        entries = await ListFilesTool().execute({"path": "src", "recursive": False}, ctx)
        assert entries == ["src/main.py"]

    async def test_not_a_directory(self, workdir):
        ctx = ToolContext(working_directory=workdir)
        with pytest.raises(NotADirectoryError):
            await ListFilesTool().execute({"path": "README.md", "recursive": False}, ctx)


# ── Through the registry ──────────────────────────────────────


class TestViaRegistry:
    async def test_defaults_applied(self, file_registry):
        entries = await file_registry.execute("list_files", {})
        assert "README.md" in entries

    async def test_failure_wrapped(self, file_registry):
        with pytest.raises(ToolExecutionError, match="File not found"):
            await file_registry.execute("read_file", {"path": "missing.md"})

    async def test_missing_path_is_argument_error(self, file_registry):
        with pytest.raises(ToolArgumentError):
            await file_registry.execute("read_file", {})
