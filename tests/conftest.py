"""Shared test fixtures for toolloop."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import pytest

from toolloop.completion.invoker import CompletionInvoker
from toolloop.providers.base import TokenUsage
from toolloop.tools.base import ToolContext
from toolloop.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def make_usage() -> Any:
    """Factory fixture for TokenUsage with sensible defaults."""

    def _make(**overrides: Any) -> TokenUsage:
        defaults: dict[str, Any] = {"input_tokens": 100, "output_tokens": 50}
        defaults.update(overrides)
        return TokenUsage(**defaults)

    return _make


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Awaitable stand-in for asyncio.sleep that records delays."""
    return AsyncMock()


@pytest.fixture
def make_invoker(fake_sleep: AsyncMock) -> Any:
    """Factory fixture for a CompletionInvoker over a scripted provider."""

    def _make(provider: Any, **overrides: Any) -> CompletionInvoker:
        overrides.setdefault("sleep", fake_sleep)
        return CompletionInvoker(provider, "test-model", **overrides)

    return _make


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Small project tree for the file tools."""
    (tmp_path / "README.md").write_text("# Demo\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("print('hi')\n")
    (tmp_path / ".hidden").write_text("secret\n")
    (tmp_path / "blob.bin").write_bytes(b"\x00\x01\x02")
    return tmp_path


@pytest.fixture
def file_registry(workdir: Path) -> ToolRegistry:
    from toolloop.tools.file_read import builtin_tools

    registry = ToolRegistry(ToolContext(working_directory=workdir))
    registry.register_all(builtin_tools())
    return registry
