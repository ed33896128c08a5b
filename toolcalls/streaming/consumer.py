"""Stream consumer — discover and execute tool calls in a chunked response.

Feeds chunks from a chunk source into a stream buffer, pulls every JSON
value that completes, and dispatches the tool calls found in it. The
outcome callback fires once per ExecutionOutcome, value by value, in
discovery order. Values that fail to decode are dropped as noise.
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import TYPE_CHECKING, Any

from toolcalls.streaming.dispatcher import (
    DispatchMode,
    ExecutionOutcome,
    adispatch_tool_calls,
    dispatch_tool_calls,
)
from toolcalls.streaming.extractor import extract_complete_values
from toolcalls.streaming.parser import parse_tool_calls

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Callable, Iterable

    from toolcalls.streaming.dispatcher import ToolLookup

    ChunkSource = Callable[[bytearray], bool]
    OutcomeSink = Callable[[ExecutionOutcome], Any]

logger = logging.getLogger(__name__)


def _as_bytes(chunk: bytes | bytearray | str) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


def chunk_source(chunks: Iterable[bytes | bytearray | str]) -> ChunkSource:
    """Adapt an iterable of chunks into a ``get_chunk(out) -> bool`` source.

    Works with anything that yields byte or text fragments, e.g.
    ``httpx.Response.iter_bytes()`` or a file read in fixed-size blocks.
    """
    iterator = iter(chunks)

    def get_chunk(out: bytearray) -> bool:
        try:
            out += _as_bytes(next(iterator))
        except StopIteration:
            return False
        return True

    return get_chunk


def _decode_values(buffer: bytearray) -> list[Any]:
    """Extract complete values from buffer and decode them, dropping noise."""
    decoded: list[Any] = []
    for raw in extract_complete_values(buffer):
        try:
            decoded.append(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Dropping undecodable stream value: %r", raw[:200])
    return decoded


def consume_stream(
    get_chunk: ChunkSource,
    on_outcome: OutcomeSink,
    *,
    lookup: ToolLookup,
    mode: DispatchMode | str = DispatchMode.SEQUENTIAL,
    max_workers: int | None = None,
    timeout: float | None = None,
) -> int:
    """Consume a chunked response, executing tool calls as values complete.

    ``get_chunk`` is called with an empty bytearray to fill and returns
    False once the stream is exhausted; it is never called again after
    that. A final extraction pass runs after exhaustion.

    Args:
        get_chunk: Chunk source (see chunk_source()).
        on_outcome: Called once per ExecutionOutcome, in discovery order.
        lookup: Returns the handler for a tool name, or ``None``.
        mode: Dispatch mode for the calls of each value.
        max_workers: Pool bound for concurrent mode.
        timeout: Optional per-handler timeout in seconds.

    Returns:
        Number of outcomes delivered.
    """
    buffer = bytearray()
    delivered = 0

    def drain() -> None:
        nonlocal delivered
        for value in _decode_values(buffer):
            calls = parse_tool_calls(value)
            outcomes = dispatch_tool_calls(
                calls, lookup, mode=mode, max_workers=max_workers, timeout=timeout
            )
            for outcome in outcomes:
                on_outcome(outcome)
                delivered += 1

    while True:
        chunk = bytearray()
        if not get_chunk(chunk):
            break
        buffer += chunk
        drain()

    # Final flush in case the last value closed at end of input
    drain()

    if buffer.strip():
        logger.debug("Stream ended with %d unconsumed byte(s)", len(buffer))
    return delivered


async def consume_async_stream(
    chunks: AsyncIterable[bytes | bytearray | str],
    on_outcome: OutcomeSink,
    *,
    lookup: ToolLookup,
    mode: DispatchMode | str = DispatchMode.SEQUENTIAL,
    timeout: float | None = None,
) -> int:
    """Async counterpart of consume_stream() over an async chunk iterator.

    ``on_outcome`` may be a plain function or a coroutine function.
    """
    buffer = bytearray()
    delivered = 0

    async def drain() -> None:
        nonlocal delivered
        for value in _decode_values(buffer):
            calls = parse_tool_calls(value)
            outcomes = await adispatch_tool_calls(calls, lookup, mode=mode, timeout=timeout)
            for outcome in outcomes:
                ret = on_outcome(outcome)
                if inspect.isawaitable(ret):
                    await ret
                delivered += 1

    async for chunk in chunks:
        buffer += _as_bytes(chunk)
        await drain()

    await drain()

    if buffer.strip():
        logger.debug("Stream ended with %d unconsumed byte(s)", len(buffer))
    return delivered
