"""Tool parameter schemas and dispatch-time argument validation.

Parameters are a small tagged variant (string, number, integer, boolean,
array, object) that nests for arrays and objects. Schemas render to the
JSON-schema shape providers expect and can be built back from it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class ParamType(enum.Enum):
    """JSON types a tool parameter may take."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class SchemaValidationError(ValueError):
    """Arguments do not match a schema. ``path`` names the bad value."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


@dataclass(frozen=True, slots=True)
class Parameter:
    """Schema for a single tool parameter."""

    type: ParamType
    description: str = ""
    items: Parameter | None = None
    properties: dict[str, Parameter] | None = None
    required: tuple[str, ...] = ()
    enum: tuple[Any, ...] | None = None
    default: Any = MISSING

    def __post_init__(self) -> None:
        if self.type is ParamType.ARRAY and self.items is None:
            msg = "array parameters need an 'items' schema"
            raise ValueError(msg)
        if self.properties is None and self.required:
            msg = "'required' is only valid on object parameters with properties"
            raise ValueError(msg)

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type.value}
        if self.description:
            schema["description"] = self.description
        if self.items is not None:
            schema["items"] = self.items.to_json_schema()
        if self.properties is not None:
            schema["properties"] = {
                name: p.to_json_schema() for name, p in self.properties.items()
            }
            if self.required:
                schema["required"] = list(self.required)
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.default is not MISSING:
            schema["default"] = self.default
        return schema

    @classmethod
    def from_json_schema(cls, schema: dict[str, Any]) -> Parameter:
        try:
            ptype = ParamType(schema.get("type", "string"))
        except ValueError as e:
            msg = f"Unsupported parameter type: {schema.get('type')!r}"
            raise ValueError(msg) from e
        items = schema.get("items")
        props = schema.get("properties")
        enum_values = schema.get("enum")
        return cls(
            type=ptype,
            description=schema.get("description", ""),
            items=cls.from_json_schema(items) if items is not None else None,
            properties=(
                {k: cls.from_json_schema(v) for k, v in props.items()}
                if props is not None
                else None
            ),
            required=tuple(schema.get("required", ())),
            enum=tuple(enum_values) if enum_values is not None else None,
            default=schema.get("default", MISSING),
        )


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    """Top-level parameter schema of a tool (always a JSON object)."""

    properties: dict[str, Parameter] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        unknown = [name for name in self.required if name not in self.properties]
        if unknown:
            msg = f"Required parameters not declared: {', '.join(unknown)}"
            raise ValueError(msg)

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {
                name: p.to_json_schema() for name, p in self.properties.items()
            },
        }
        if self.required:
            schema["required"] = list(self.required)
        return schema

    @classmethod
    def from_json_schema(cls, schema: dict[str, Any]) -> ObjectSchema:
        if schema.get("type", "object") != "object":
            msg = "Tool parameter schema must be of type 'object'"
            raise ValueError(msg)
        props = schema.get("properties") or {}
        return cls(
            properties={k: Parameter.from_json_schema(v) for k, v in props.items()},
            required=tuple(schema.get("required", ())),
        )

    def validate(self, arguments: object) -> dict[str, Any]:
        """Validate ``arguments`` and return a copy with defaults applied.

        Raises:
            SchemaValidationError: On the first mismatch found.
        """
        return _validate_object(self.properties, self.required, arguments, "")


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _validate_object(
    properties: dict[str, Parameter],
    required: tuple[str, ...],
    value: object,
    path: str,
) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaValidationError(
            path, f"expected object, got {_type_name(value)}"
        )
    for name in required:
        if name not in value:
            raise SchemaValidationError(
                _join(path, name), "required parameter is missing"
            )

    # Unknown keys pass through untouched
    result: dict[str, Any] = dict(value)
    for name, param in properties.items():
        if name in value:
            result[name] = _validate_value(param, value[name], _join(path, name))
        elif param.default is not MISSING:
            result[name] = param.default
    return result


def _validate_value(param: Parameter, value: object, path: str) -> Any:
    ptype = param.type
    if ptype is ParamType.STRING:
        ok = isinstance(value, str)
    elif ptype is ParamType.BOOLEAN:
        ok = isinstance(value, bool)
    elif ptype is ParamType.INTEGER:
        ok = isinstance(value, int) and not isinstance(value, bool)
        if isinstance(value, float) and value.is_integer():
            value, ok = int(value), True
    elif ptype is ParamType.NUMBER:
        ok = isinstance(value, int | float) and not isinstance(value, bool)
    elif ptype is ParamType.ARRAY:
        if not isinstance(value, list):
            raise SchemaValidationError(
                path, f"expected array, got {_type_name(value)}"
            )
        assert param.items is not None
        return [
            _validate_value(param.items, item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]
    else:
        return _validate_object(
            param.properties or {}, param.required, value, path
        )

    if not ok:
        raise SchemaValidationError(
            path, f"expected {ptype.value}, got {_type_name(value)}"
        )
    if param.enum is not None and value not in param.enum:
        allowed = ", ".join(repr(v) for v in param.enum)
        raise SchemaValidationError(path, f"must be one of {allowed}")
    return value
