"""Tool protocol and data types.

Defines the ``Tool`` protocol that all tool implementations must
satisfy, the context bag handed to every execution, and a
:class:`FunctionTool` adapter for plain callables.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from toolloop.tools.schema import ObjectSchema

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from pathlib import Path


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Collaborator handles injected by whoever builds the registry.

    Passed through unmodified to every ``execute`` call; the registry
    and executor never look inside.
    """

    working_directory: Path | None = None
    storage: Any = None
    logger: logging.Logger | None = None


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Schema definition for a tool, suitable for passing to providers."""

    name: str
    description: str
    parameters: ObjectSchema

    def to_wire(self) -> dict[str, Any]:
        """OpenAI-compatible function tool description."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.to_json_schema(),
            },
        }


@runtime_checkable
class Tool(Protocol):
    """Protocol that all tool implementations must satisfy."""

    @property
    def name(self) -> str:
        """Unique name for this tool."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    def parameters(self) -> ObjectSchema:
        """Schema for the tool's parameters."""
        ...

    async def execute(self, params: dict[str, Any], context: ToolContext | None) -> Any:
        """Execute the tool with validated arguments.

        Returns:
            Any JSON-serializable result.

        Raises:
            Exception: On execution failure.
        """
        ...


@dataclass(frozen=True, slots=True)
class FunctionTool:
    """Adapts a plain ``fn(params, context)`` callable into a :class:`Tool`.

    ``fn`` may be sync or async.
    """

    name: str
    description: str
    parameters: ObjectSchema
    fn: Callable[[dict[str, Any], ToolContext | None], Any]

    async def execute(self, params: dict[str, Any], context: ToolContext | None) -> Any:
        result = self.fn(params, context)
        if inspect.isawaitable(result):
            result = await result
        return result


def tool(
    name: str,
    description: str,
    parameters: ObjectSchema | dict[str, Any] | None = None,
) -> Callable[[Callable[[dict[str, Any], ToolContext | None], Any]], FunctionTool]:
    """Decorator turning a function into a :class:`FunctionTool`.

    ``parameters`` may be an :class:`ObjectSchema` or a JSON-schema dict.
    """
    if parameters is None:
        schema = ObjectSchema()
    elif isinstance(parameters, ObjectSchema):
        schema = parameters
    else:
        schema = ObjectSchema.from_json_schema(parameters)

    def wrapper(fn: Callable[[dict[str, Any], ToolContext | None], Any]) -> FunctionTool:
        return FunctionTool(name=name, description=description, parameters=schema, fn=fn)

    return wrapper
