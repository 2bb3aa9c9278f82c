"""Tool framework for the agentic loop.

Provides a tool protocol, a parameter schema with dispatch-time
validation, and a registry that isolates tool failures.
"""

from toolloop.tools.base import FunctionTool, Tool, ToolContext, ToolDefinition, tool
from toolloop.tools.registry import ToolRegistry
from toolloop.tools.schema import ObjectSchema, Parameter, ParamType

__all__ = [
    "FunctionTool",
    "ObjectSchema",
    "ParamType",
    "Parameter",
    "Tool",
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
    "tool",
]
