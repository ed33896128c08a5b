"""Tool registration: registry, tool specs and parameter schema helpers."""

from toolcalls.tools.params import ParameterSchema, schema_from_model
from toolcalls.tools.registry import ToolRegistry, ToolSpec

__all__ = [
    "ParameterSchema",
    "ToolRegistry",
    "ToolSpec",
    "schema_from_model",
]
