"""Tool dispatcher — execute parsed tool calls and collect their outcomes.

Runs each ParsedToolCall against a handler lookup, sequentially or on a
worker pool, and returns one ExecutionOutcome per call in discovery
order. Failures (unknown tool, handler exception, timeout) are captured
into the outcome instead of being raised, so one bad call never affects
its siblings.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from toolcalls.exceptions import ToolNotFoundError, ToolTimeoutError

if TYPE_CHECKING:
    from collections.abc import Callable

    from toolcalls.streaming.parser import ParsedToolCall

    ToolHandler = Callable[[Any], Any]
    ToolLookup = Callable[[str], ToolHandler | None]

logger = logging.getLogger(__name__)


class DispatchMode(StrEnum):
    """How a batch of tool calls is executed."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass
class ExecutionOutcome:
    """Result of attempting one tool call.

    Exactly one of ``result`` / ``error`` is meaningful: ``error`` is
    ``None`` on success (``result`` may itself legitimately be ``None``).

    Attributes:
        name: Tool function name.
        arguments: Arguments the handler was called with.
        result: Handler return value on success.
        error: Failure description, or ``None`` on success.
        id: Tool call ID from the LLM, when present.
    """

    name: str
    arguments: Any = field(default_factory=dict)
    result: Any = None
    error: str | None = None
    id: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "arguments": self.arguments}
        if self.id is not None:
            data["id"] = self.id
        if self.ok:
            data["result"] = self.result
        else:
            data["error"] = self.error
        return data

    def to_tool_message(self) -> dict[str, Any]:
        """Render as an OpenAI ``role: tool`` message for the follow-up request."""
        payload = self.result if self.ok else {"error": self.error}
        return {
            "role": "tool",
            "tool_call_id": self.id,
            "name": self.name,
            "content": json.dumps(payload, default=str),
        }


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _failed(call: ParsedToolCall, error: str) -> ExecutionOutcome:
    return ExecutionOutcome(name=call.name, arguments=call.args, error=error, id=call.id)


def _invoke_one(call: ParsedToolCall, lookup: ToolLookup) -> ExecutionOutcome:
    """Invoke a single call, capturing any failure into the outcome."""
    handler = lookup(call.name)
    if handler is None:
        logger.warning("Tool %s not found", call.name)
        return _failed(call, str(ToolNotFoundError(call.name)))

    try:
        result = handler(call.args)
        if inspect.isawaitable(result):
            result = asyncio.run(result)
    except Exception as e:
        logger.warning("Tool %s failed: %s", call.name, e)
        return _failed(call, _describe(e))

    return ExecutionOutcome(name=call.name, arguments=call.args, result=result, id=call.id)


class _Unit:
    """One pooled call; records when a worker actually picks it up."""

    def __init__(self, call: ParsedToolCall) -> None:
        self.call = call
        self.started = threading.Event()
        self.started_at = 0.0

    def run(self, lookup: ToolLookup) -> ExecutionOutcome:
        self.started_at = time.monotonic()
        self.started.set()
        return _invoke_one(self.call, lookup)


def _join(future: Future[ExecutionOutcome], unit: _Unit, timeout: float | None) -> ExecutionOutcome:
    if timeout is None:
        return future.result()

    # The clock runs from handler start; time spent queued behind a
    # bounded pool does not count against the call.
    unit.started.wait()
    remaining = unit.started_at + timeout - time.monotonic()
    try:
        return future.result(timeout=max(remaining, 0))
    except FutureTimeoutError:
        error = ToolTimeoutError(unit.call.name, timeout)
        logger.warning("%s", error)
        return _failed(unit.call, str(error))


def _dispatch_pooled(
    tool_calls: list[ParsedToolCall],
    lookup: ToolLookup,
    *,
    concurrent: bool,
    max_workers: int | None,
    timeout: float | None,
) -> list[ExecutionOutcome]:
    # Sequential mode only lands here when a timeout is set; every call then
    # needs its own worker so a hung handler cannot block the next one.
    workers = (max_workers if concurrent else None) or len(tool_calls)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="toolcall")
    units = [_Unit(tc) for tc in tool_calls]
    try:
        if concurrent:
            futures = [executor.submit(u.run, lookup) for u in units]
            return [_join(f, u, timeout) for f, u in zip(futures, units, strict=True)]
        return [_join(executor.submit(u.run, lookup), u, timeout) for u in units]
    finally:
        # Timed-out handlers keep running; don't block the caller on them.
        executor.shutdown(wait=False)


def dispatch_tool_calls(
    tool_calls: list[ParsedToolCall],
    lookup: ToolLookup,
    *,
    mode: DispatchMode | str = DispatchMode.SEQUENTIAL,
    max_workers: int | None = None,
    timeout: float | None = None,
) -> list[ExecutionOutcome]:
    """Execute parsed tool calls and return their outcomes.

    Sequential mode runs handlers one at a time in list order. Concurrent
    mode launches every call on a thread pool, then joins the futures in
    list order, so the returned order is the discovery order regardless of
    completion order.

    Args:
        tool_calls: Calls from parse_tool_calls(), in discovery order.
        lookup: Returns the handler for a tool name, or ``None``.
        mode: ``sequential`` or ``concurrent``.
        max_workers: Pool bound for concurrent mode (default: one per call).
        timeout: Optional per-handler timeout in seconds.

    Returns:
        One ExecutionOutcome per call, in the same order as ``tool_calls``.
    """
    mode = DispatchMode(mode)
    if not tool_calls:
        return []

    logger.debug("Dispatching %d tool call(s) in %s mode", len(tool_calls), mode)

    if mode is DispatchMode.SEQUENTIAL and timeout is None:
        return [_invoke_one(tc, lookup) for tc in tool_calls]

    return _dispatch_pooled(
        tool_calls,
        lookup,
        concurrent=mode is DispatchMode.CONCURRENT,
        max_workers=max_workers,
        timeout=timeout,
    )


async def _ainvoke_one(
    call: ParsedToolCall,
    lookup: ToolLookup,
    timeout: float | None,
) -> ExecutionOutcome:
    handler = lookup(call.name)
    if handler is None:
        logger.warning("Tool %s not found", call.name)
        return _failed(call, str(ToolNotFoundError(call.name)))

    try:
        # One deadline covers the handler and any awaitable it hands back.
        async with asyncio.timeout(timeout):
            if inspect.iscoroutinefunction(handler):
                result = await handler(call.args)
            else:
                result = await asyncio.to_thread(handler, call.args)
            if inspect.isawaitable(result):
                result = await result
    except TimeoutError:
        error = ToolTimeoutError(call.name, timeout or 0)
        logger.warning("%s", error)
        return _failed(call, str(error))
    except Exception as e:
        logger.warning("Tool %s failed: %s", call.name, e)
        return _failed(call, _describe(e))

    return ExecutionOutcome(name=call.name, arguments=call.args, result=result, id=call.id)


async def adispatch_tool_calls(
    tool_calls: list[ParsedToolCall],
    lookup: ToolLookup,
    *,
    mode: DispatchMode | str = DispatchMode.SEQUENTIAL,
    timeout: float | None = None,
) -> list[ExecutionOutcome]:
    """Async counterpart of dispatch_tool_calls().

    Coroutine handlers are awaited directly; plain handlers run on a
    worker thread via ``asyncio.to_thread``. Ordering and failure
    isolation match the sync dispatcher.
    """
    mode = DispatchMode(mode)
    if not tool_calls:
        return []

    logger.debug("Dispatching %d tool call(s) in %s mode (async)", len(tool_calls), mode)

    if mode is DispatchMode.CONCURRENT:
        return list(await asyncio.gather(*(_ainvoke_one(tc, lookup, timeout) for tc in tool_calls)))

    return [await _ainvoke_one(tc, lookup, timeout) for tc in tool_calls]
