"""Tool registry: manages available tools.

Provides registration, lookup, listing, and execution of tools
that implement the :class:`Tool` protocol. Every failure that comes
out of :meth:`ToolRegistry.execute` is a :class:`ToolError`, so callers
can treat all tool failures the same way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from toolloop.core.errors import (
    DuplicateToolError,
    ToolArgumentError,
    ToolExecutionError,
    ToolNotFoundError,
)
from toolloop.tools.base import ToolDefinition
from toolloop.tools.schema import SchemaValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from toolloop.tools.base import Tool, ToolContext


class ToolRegistry:
    """Registry for managing available tools.

    The registry performs no locking. When one instance is shared by
    concurrent runs, the tools themselves must be safe to call
    concurrently with the same context.
    """

    def __init__(self, context: ToolContext | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        self._context = context

    @property
    def context(self) -> ToolContext | None:
        return self._context

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Raises:
            DuplicateToolError: If a tool with the same name is already
                registered. The registry is left unchanged.
        """
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[Tool]) -> None:
        """Register several tools in order.

        Not transactional: tools registered before a duplicate stay
        registered when :class:`DuplicateToolError` is raised.
        """
        for t in tools:
            self.register(t)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name, or None if it is not registered."""
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def get_all(self) -> list[Tool]:
        return list(self._tools.values())

    def list_names(self) -> list[str]:
        """Return names of all registered tools."""
        return list(self._tools.keys())

    def list_definitions(self) -> list[ToolDefinition]:
        """Return tool definitions (without execute) for all registered tools."""
        return [
            ToolDefinition(
                name=t.name,
                description=t.description,
                parameters=t.parameters,
            )
            for t in self._tools.values()
        ]

    def to_wire_format(self) -> list[dict[str, Any]]:
        """Tool list in the OpenAI function-calling shape.

        Adapters for other providers convert from this shape.
        """
        return [d.to_wire() for d in self.list_definitions()]

    async def execute(self, name: str, params: Any) -> Any:
        """Validate ``params`` and execute the named tool.

        Raises:
            ToolNotFoundError: If ``name`` is not registered.
            ToolArgumentError: If ``params`` do not match the tool schema.
            ToolExecutionError: Wrapping any exception the tool raised.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)

        try:
            validated = tool.parameters.validate(params)
        except SchemaValidationError as exc:
            raise ToolArgumentError(name, str(exc)) from exc

        try:
            return await tool.execute(validated, self._context)
        except Exception as exc:
            raise ToolExecutionError(name, str(exc) or type(exc).__name__) from exc

    def count(self) -> int:
        return len(self._tools)

    def clear(self) -> None:
        """Remove all registered tools."""
        self._tools.clear()

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
