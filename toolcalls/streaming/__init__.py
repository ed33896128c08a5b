"""Streaming module — tool call discovery and execution components.

Provides modular, independently testable components for extracting JSON
values from a chunked response, locating tool calls inside them, and
executing those calls sequentially or concurrently.
"""

from toolcalls.streaming.consumer import chunk_source, consume_async_stream, consume_stream
from toolcalls.streaming.dispatcher import (
    DispatchMode,
    ExecutionOutcome,
    adispatch_tool_calls,
    dispatch_tool_calls,
)
from toolcalls.streaming.extractor import extract_complete_values
from toolcalls.streaming.parser import ParsedToolCall, parse_arguments, parse_tool_calls

__all__ = [
    "DispatchMode",
    "ExecutionOutcome",
    "ParsedToolCall",
    "adispatch_tool_calls",
    "chunk_source",
    "consume_async_stream",
    "consume_stream",
    "dispatch_tool_calls",
    "extract_complete_values",
    "parse_arguments",
    "parse_tool_calls",
]
