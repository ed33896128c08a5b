"""Toolcalls — discover and execute tool calls in LLM API responses.

Register handlers on a ToolRegistry, then hand it a chat completions
response (or a chunked stream of one) to run every tool call it names.
"""

from toolcalls.exceptions import (
    ConfigurationError,
    NoToolCallFoundError,
    ToolCallError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from toolcalls.streaming import (
    DispatchMode,
    ExecutionOutcome,
    ParsedToolCall,
    chunk_source,
    parse_tool_calls,
)
from toolcalls.tools import ParameterSchema, ToolRegistry, ToolSpec, schema_from_model

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DispatchMode",
    "ExecutionOutcome",
    "NoToolCallFoundError",
    "ParameterSchema",
    "ParsedToolCall",
    "ToolCallError",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolSpec",
    "ToolTimeoutError",
    "chunk_source",
    "parse_tool_calls",
    "schema_from_model",
]
