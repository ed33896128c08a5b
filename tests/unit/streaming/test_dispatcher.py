"""Unit tests for the tool dispatcher.

Tests that dispatch_tool_calls() and adispatch_tool_calls() return one
outcome per call in discovery order, isolate failures, and actually run
concurrently in concurrent mode.
"""

import asyncio
import json
import time

import pytest

from toolcalls.streaming.dispatcher import (
    DispatchMode,
    ExecutionOutcome,
    adispatch_tool_calls,
    dispatch_tool_calls,
)
from toolcalls.streaming.parser import ParsedToolCall

BOTH_MODES = pytest.mark.parametrize("mode", [DispatchMode.SEQUENTIAL, DispatchMode.CONCURRENT])


class TestExecutionOutcome:
    """Tests for the ExecutionOutcome dataclass."""

    def test_ok_and_to_dict_success(self):
        outcome = ExecutionOutcome(name="echo", arguments={"msg": "hi"}, result={"echoed": "hi"}, id="c1")
        assert outcome.ok is True
        assert outcome.to_dict() == {
            "name": "echo",
            "arguments": {"msg": "hi"},
            "id": "c1",
            "result": {"echoed": "hi"},
        }

    def test_to_dict_failure_has_no_result(self):
        outcome = ExecutionOutcome(name="ghost", error="Tool not found: ghost")
        assert outcome.ok is False
        data = outcome.to_dict()
        assert data["error"] == "Tool not found: ghost"
        assert "result" not in data
        assert "id" not in data

    def test_none_result_is_success(self):
        outcome = ExecutionOutcome(name="noop", result=None)
        assert outcome.ok is True
        assert outcome.to_dict()["result"] is None

    def test_to_tool_message(self):
        ok = ExecutionOutcome(name="echo", result={"echoed": "hi"}, id="c1")
        failed = ExecutionOutcome(name="bad", error="boom", id="c2")

        assert ok.to_tool_message() == {
            "role": "tool",
            "tool_call_id": "c1",
            "name": "echo",
            "content": '{"echoed": "hi"}',
        }
        assert json.loads(failed.to_tool_message()["content"]) == {"error": "boom"}


class TestDispatchToolCalls:
    """Tests for dispatch_tool_calls()."""

    @BOTH_MODES
    def test_empty_call_list(self, lookup, mode):
        assert dispatch_tool_calls([], lookup, mode=mode) == []

    @BOTH_MODES
    def test_order_preserved(self, lookup, mode):
        calls = [ParsedToolCall(name="double", args={"x": i}) for i in range(10)]
        outcomes = dispatch_tool_calls(calls, lookup, mode=mode)
        assert [o.result for o in outcomes] == [i * 2 for i in range(10)]

    def test_concurrent_order_independent_of_completion(self, lookup):
        # First call finishes last
        calls = [
            ParsedToolCall(name="slow", args={"delay": 0.3, "v": "first"}),
            ParsedToolCall(name="slow", args={"delay": 0.0, "v": "second"}),
            ParsedToolCall(name="slow", args={"delay": 0.1, "v": "third"}),
        ]
        outcomes = dispatch_tool_calls(calls, lookup, mode="concurrent")
        assert [o.result for o in outcomes] == ["first", "second", "third"]

    @BOTH_MODES
    def test_failure_isolated(self, lookup, mode):
        calls = [
            ParsedToolCall(name="echo", args={"msg": "a"}),
            ParsedToolCall(name="bad", args={}),
            ParsedToolCall(name="echo", args={"msg": "b"}),
        ]
        outcomes = dispatch_tool_calls(calls, lookup, mode=mode)

        assert [o.ok for o in outcomes] == [True, False, True]
        assert outcomes[0].result == {"echoed": "a"}
        assert outcomes[1].error == "boom"
        assert outcomes[1].result is None
        assert outcomes[2].result == {"echoed": "b"}

    @BOTH_MODES
    def test_tool_not_found(self, lookup, mode):
        outcomes = dispatch_tool_calls([ParsedToolCall(name="ghost", args={"a": 1}, id="c1")], lookup, mode=mode)

        assert len(outcomes) == 1
        assert outcomes[0].name == "ghost"
        assert outcomes[0].arguments == {"a": 1}
        assert outcomes[0].id == "c1"
        assert outcomes[0].ok is False
        assert "not found" in outcomes[0].error.lower()

    def test_exception_without_message_uses_class_name(self):
        def handler(args):
            raise KeyError

        outcomes = dispatch_tool_calls([ParsedToolCall(name="k")], {"k": handler}.get)
        assert outcomes[0].error == "KeyError"

    def test_mode_accepts_plain_string(self, lookup):
        outcomes = dispatch_tool_calls([ParsedToolCall(name="double", args={"x": 2})], lookup, mode="sequential")
        assert outcomes[0].result == 4

    def test_invalid_mode_rejected(self, lookup):
        with pytest.raises(ValueError):
            dispatch_tool_calls([], lookup, mode="parallel")

    def test_coroutine_handler_is_awaited(self):
        async def handler(args):
            await asyncio.sleep(0)
            return args["v"] + 1

        calls = [ParsedToolCall(name="inc", args={"v": 1}), ParsedToolCall(name="inc", args={"v": 2})]
        outcomes = dispatch_tool_calls(calls, {"inc": handler}.get, mode="concurrent")
        assert [o.result for o in outcomes] == [2, 3]


class TestConcurrency:
    """Wall-clock behavior of the two modes."""

    def test_concurrent_speedup(self, lookup):
        calls = [ParsedToolCall(name="slow", args={"delay": 0.2, "v": i}) for i in range(5)]

        start = time.monotonic()
        outcomes = dispatch_tool_calls(calls, lookup, mode="concurrent")
        elapsed = time.monotonic() - start

        assert [o.result for o in outcomes] == list(range(5))
        # Serial would take ~1.0s
        assert elapsed < 0.6

    def test_sequential_runs_one_at_a_time(self, lookup):
        calls = [ParsedToolCall(name="slow", args={"delay": 0.1, "v": i}) for i in range(3)]

        start = time.monotonic()
        dispatch_tool_calls(calls, lookup, mode="sequential")
        assert time.monotonic() - start >= 0.3

    def test_bounded_pool_preserves_order(self, lookup):
        calls = [ParsedToolCall(name="slow", args={"delay": 0.01, "v": i}) for i in range(6)]
        outcomes = dispatch_tool_calls(calls, lookup, mode="concurrent", max_workers=2)
        assert [o.result for o in outcomes] == list(range(6))


class TestTimeout:
    """Optional per-handler timeout."""

    @BOTH_MODES
    def test_hung_handler_times_out_without_blocking_siblings(self, lookup, mode):
        calls = [
            ParsedToolCall(name="slow", args={"delay": 0.5, "v": "late"}),
            ParsedToolCall(name="echo", args={"msg": "fine"}),
        ]

        start = time.monotonic()
        outcomes = dispatch_tool_calls(calls, lookup, mode=mode, timeout=0.1)
        elapsed = time.monotonic() - start

        assert outcomes[0].ok is False
        assert "timed out" in outcomes[0].error
        assert outcomes[1].result == {"echoed": "fine"}
        assert elapsed < 0.4

    def test_queued_call_not_timed_out_behind_hung_one(self, lookup):
        calls = [
            ParsedToolCall(name="slow", args={"delay": 0.5, "v": "late"}),
            ParsedToolCall(name="echo", args={"msg": "fine"}),
        ]

        outcomes = dispatch_tool_calls(calls, lookup, mode="concurrent", max_workers=1, timeout=0.2)

        assert "timed out" in outcomes[0].error
        assert outcomes[1].ok
        assert outcomes[1].result == {"echoed": "fine"}

    def test_fast_handlers_unaffected_by_timeout(self, lookup):
        calls = [ParsedToolCall(name="double", args={"x": 3})]
        outcomes = dispatch_tool_calls(calls, lookup, mode="sequential", timeout=5)
        assert outcomes[0].result == 6


class TestAsyncDispatch:
    """Tests for adispatch_tool_calls()."""

    @pytest.mark.asyncio
    @BOTH_MODES
    async def test_order_and_isolation(self, lookup, mode):
        calls = [
            ParsedToolCall(name="echo", args={"msg": "a"}),
            ParsedToolCall(name="bad"),
            ParsedToolCall(name="ghost"),
            ParsedToolCall(name="double", args={"x": 5}),
        ]
        outcomes = await adispatch_tool_calls(calls, lookup, mode=mode)

        assert [o.name for o in outcomes] == ["echo", "bad", "ghost", "double"]
        assert outcomes[0].result == {"echoed": "a"}
        assert outcomes[1].error == "boom"
        assert "not found" in outcomes[2].error.lower()
        assert outcomes[3].result == 10

    @pytest.mark.asyncio
    async def test_async_handlers_run_concurrently(self):
        async def nap(args):
            await asyncio.sleep(0.2)
            return args["v"]

        calls = [ParsedToolCall(name="nap", args={"v": i}) for i in range(4)]

        start = time.monotonic()
        outcomes = await adispatch_tool_calls(calls, {"nap": nap}.get, mode="concurrent")
        elapsed = time.monotonic() - start

        assert [o.result for o in outcomes] == [0, 1, 2, 3]
        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_sync_handlers_run_in_threads_concurrently(self, lookup):
        calls = [ParsedToolCall(name="slow", args={"delay": 0.2, "v": i}) for i in range(4)]

        start = time.monotonic()
        outcomes = await adispatch_tool_calls(calls, lookup, mode="concurrent")
        elapsed = time.monotonic() - start

        assert [o.result for o in outcomes] == [0, 1, 2, 3]
        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_async_timeout(self):
        async def hang(args):
            await asyncio.sleep(5)

        outcomes = await adispatch_tool_calls([ParsedToolCall(name="hang")], {"hang": hang}.get, timeout=0.05)
        assert outcomes[0].ok is False
        assert "timed out" in outcomes[0].error

    @pytest.mark.asyncio
    async def test_async_timeout_covers_returned_awaitable(self):
        # Plain handler that hands back a coroutine instead of awaiting it
        def deferred(args):
            return asyncio.sleep(5)

        start = time.monotonic()
        outcomes = await adispatch_tool_calls(
            [ParsedToolCall(name="deferred")], {"deferred": deferred}.get, timeout=0.05
        )

        assert "timed out" in outcomes[0].error
        assert time.monotonic() - start < 1
