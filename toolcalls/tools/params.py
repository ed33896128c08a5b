"""Parameter schema helpers for tool registration.

Builds the JSON-schema ``parameters`` document that accompanies a tool
in the OpenAI function-calling format. Schemas are advisory metadata for
the model; arguments are not validated against them before invocation.

Usage:
    params = (
        ParameterSchema()
        .integer("a", required=True)
        .integer("b", required=True)
        .to_dict()
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import BaseModel


class ParameterSchema:
    """Fluent builder for an object-typed parameters schema."""

    def __init__(self) -> None:
        self._properties: dict[str, dict[str, Any]] = {}
        self._required: list[str] = []

    def _add(self, name: str, json_type: str, required: bool, description: str | None) -> ParameterSchema:
        prop: dict[str, Any] = {"type": json_type}
        if description:
            prop["description"] = description
        self._properties[name] = prop
        if required and name not in self._required:
            self._required.append(name)
        return self

    def integer(self, name: str, *, required: bool = False, description: str | None = None) -> ParameterSchema:
        return self._add(name, "integer", required, description)

    def number(self, name: str, *, required: bool = False, description: str | None = None) -> ParameterSchema:
        return self._add(name, "number", required, description)

    def string(self, name: str, *, required: bool = False, description: str | None = None) -> ParameterSchema:
        return self._add(name, "string", required, description)

    def boolean(self, name: str, *, required: bool = False, description: str | None = None) -> ParameterSchema:
        return self._add(name, "boolean", required, description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: dict(prop) for name, prop in self._properties.items()},
            "required": list(self._required),
        }


def schema_from_model(model: type[BaseModel]) -> dict[str, Any]:
    """Derive a parameters schema from a pydantic model.

    Field descriptions and nested model definitions (``$defs``) are kept;
    the model title is dropped.
    """
    schema = model.model_json_schema()
    params: dict[str, Any] = {
        "type": "object",
        "properties": schema.get("properties", {}),
        "required": schema.get("required", []),
    }
    if "$defs" in schema:
        params["$defs"] = schema["$defs"]
    return params
