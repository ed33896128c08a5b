"""Tool call parser — locate tool calls inside an LLM API response.

Normalizes the response shapes produced by OpenAI-compatible APIs into an
ordered list of ParsedToolCall instances:

- ``{"choices": [...]}`` completions and streaming chunks,
- a bare list of choices/messages,
- a single message or delta object.

Each entry's message-like node (``message``, else ``delta``, else the
entry itself) is searched for the ``tool_calls`` list convention first and
the legacy ``function_call`` convention second.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedToolCall:
    """A tool call discovered in a response.

    Attributes:
        name: Tool function name (never empty).
        args: Decoded arguments; ``{}`` when absent or unparseable.
        id: Tool call ID from the LLM, when the response carries one.
    """

    name: str
    args: Any = field(default_factory=dict)
    id: str | None = None


def parse_arguments(raw: Any) -> Any:
    """Decode a function's ``arguments`` field.

    JSON text is decoded, already-structured values pass through, and
    anything else (absent, unparseable, scalar) becomes an empty dict.
    """
    if isinstance(raw, str | bytes):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Arguments could not be parsed, using {}: %s", raw[:200])
            return {}
    if isinstance(raw, dict | list):
        return raw
    return {}


def _entries(response: Any) -> list[Any]:
    if isinstance(response, dict) and "choices" in response:
        choices = response["choices"]
        return choices if isinstance(choices, list) else [choices]
    if isinstance(response, list):
        return response
    return [response]


def _message_like(entry: Any) -> Any:
    if isinstance(entry, dict):
        if "message" in entry:
            return entry["message"]
        if "delta" in entry:
            return entry["delta"]
    return entry


def _call_from_function(func: Any, call_id: Any = None) -> ParsedToolCall | None:
    if not isinstance(func, dict):
        return None
    name = func.get("name")
    if not isinstance(name, str) or not name:
        return None
    return ParsedToolCall(
        name=name,
        args=parse_arguments(func.get("arguments")),
        id=call_id if isinstance(call_id, str) else None,
    )


def _collect_from_node(node: Any) -> list[ParsedToolCall]:
    if not isinstance(node, dict):
        return []

    calls: list[ParsedToolCall] = []

    # Current convention: tool_calls: [{id, type, function: {name, arguments}}]
    tool_calls = node.get("tool_calls")
    if isinstance(tool_calls, list):
        for tc in tool_calls:
            if not isinstance(tc, dict):
                continue
            func = tc.get("function", tc)
            call = _call_from_function(func, tc.get("id"))
            if call is not None:
                calls.append(call)

    # Legacy convention: function_call: {name, arguments}
    call = _call_from_function(node.get("function_call"))
    if call is not None:
        calls.append(call)

    return calls


def parse_tool_calls(response: Any) -> list[ParsedToolCall]:
    """Find every tool call in a decoded API response.

    Calls without a usable name are skipped silently.

    Args:
        response: Decoded JSON response, streaming chunk, or message.

    Returns:
        Tool calls in discovery order: entry order, then ``tool_calls``
        in listed order, then ``function_call``.
    """
    result: list[ParsedToolCall] = []
    for entry in _entries(response):
        result.extend(_collect_from_node(_message_like(entry)))
    return result
