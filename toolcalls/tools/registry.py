"""Tool registry — named handlers with schemas, plus the dispatch façade.

A ToolRegistry maps tool names to handler callables and their
OpenAI-style schema documents, and exposes the high-level operations
that run the discovery/dispatch pipeline against those handlers.

Registries are explicit instances; create one per application (or per
agent) and pass it where it is needed.

Usage:
    registry = ToolRegistry()

    @registry.tool()
    def add(a: int, b: int) -> int:
        return a + b

    outcomes = registry.process_response(api_response, mode="concurrent")
"""

from __future__ import annotations

import inspect
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from langchain_core.utils.function_calling import convert_to_openai_function

from toolcalls.exceptions import NoToolCallFoundError, ToolNotFoundError
from toolcalls.settings import Settings, get_settings
from toolcalls.streaming.consumer import consume_async_stream, consume_stream
from toolcalls.streaming.dispatcher import (
    DispatchMode,
    ExecutionOutcome,
    adispatch_tool_calls,
    dispatch_tool_calls,
)
from toolcalls.streaming.parser import parse_tool_calls

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Callable

    from toolcalls.streaming.consumer import ChunkSource, OutcomeSink
    from toolcalls.streaming.dispatcher import ToolHandler

logger = logging.getLogger(__name__)


def _empty_parameters() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolSpec:
    """Declarative description of a tool.

    Attributes:
        name: Name the model uses to call the tool.
        description: What the tool does, shown to the model.
        parameters: JSON schema for the arguments object.
        handler: Callable receiving the decoded arguments.
    """

    name: str
    handler: ToolHandler
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=_empty_parameters)

    def schema(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "parameters": self.parameters}


class ToolRegistry:
    """Registry of tool handlers and their schemas.

    Registration is expected to finish before dispatch starts; the
    registry is only read while calls are running.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings
        self._handlers: dict[str, ToolHandler] = {}
        self._schemas: dict[str, dict[str, Any]] = {}

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    # -- registration ---------------------------------------------------

    def register(
        self,
        name: str,
        handler: ToolHandler,
        schema: dict[str, Any] | None = None,
    ) -> None:
        """Register a handler under name, replacing any previous one."""
        if name in self._handlers:
            logger.debug("Replacing tool %s", name)
        self._handlers[name] = handler
        self._schemas[name] = (
            schema
            if schema is not None
            else {"name": name, "description": "", "parameters": _empty_parameters()}
        )

    def register_spec(self, spec: ToolSpec) -> None:
        self.register(spec.name, spec.handler, spec.schema())

    def tool(
        self,
        name: str | None = None,
        *,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator registering a function as a tool.

        The function is called with the arguments object unpacked as
        keyword arguments. Without explicit ``parameters`` the schema is
        derived from the signature and docstring.
        """

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            if parameters is None:
                schema = dict(convert_to_openai_function(fn))
            else:
                schema = {"description": (fn.__doc__ or "").strip(), "parameters": parameters}
            schema["name"] = name or fn.__name__
            if description is not None:
                schema["description"] = description

            if inspect.iscoroutinefunction(fn):

                async def handler(args: Any) -> Any:
                    return await fn(**(args or {}))

            else:

                def handler(args: Any) -> Any:
                    return fn(**(args or {}))

            self.register(schema["name"], handler, schema)
            return fn

        return decorator

    # -- lookup ---------------------------------------------------------

    def lookup(self, name: str) -> ToolHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def schemas(self) -> list[dict[str, Any]]:
        """Schema documents of all tools, ordered by name."""
        return [self._schemas[name] for name in sorted(self._schemas)]

    def tools_for_openai(self) -> list[dict[str, Any]]:
        """Schemas in the ``tools`` request format of the chat completions API."""
        return [{"type": "function", "function": schema} for schema in self.schemas()]

    def tools_for_openai_string(self) -> str:
        return json.dumps(self.tools_for_openai())

    # -- direct invocation ----------------------------------------------

    def _require(self, name: str) -> ToolHandler:
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolNotFoundError(name)
        return handler

    def invoke(self, name: str, args: Any) -> Any:
        """Call one tool directly; raises ToolNotFoundError if unregistered."""
        return self._require(name)(args)

    def invoke_concurrent(self, name: str, args: Any) -> Any:
        """Like invoke(), but the handler runs on a worker thread."""
        handler = self._require(name)
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="toolcall") as executor:
            return executor.submit(handler, args).result()

    def handle_tool_call_response(self, response: Any) -> Any:
        """Invoke the first tool call in response and return its result.

        Raises:
            NoToolCallFoundError: The response carries no tool call.
            ToolNotFoundError: The called tool is not registered.
        """
        calls = parse_tool_calls(response)
        if not calls:
            raise NoToolCallFoundError()
        return self.invoke(calls[0].name, calls[0].args)

    # -- batch pipeline -------------------------------------------------

    def _mode(self, mode: DispatchMode | str | None) -> DispatchMode:
        return DispatchMode(mode or self.settings.dispatch_mode)

    def process_response(
        self,
        response: Any,
        *,
        mode: DispatchMode | str | None = None,
    ) -> list[ExecutionOutcome]:
        """Find and execute every tool call in a decoded response."""
        settings = self.settings
        return dispatch_tool_calls(
            parse_tool_calls(response),
            self.lookup,
            mode=self._mode(mode),
            max_workers=settings.dispatch_max_workers,
            timeout=settings.tool_timeout_seconds,
        )

    def process_stream(
        self,
        get_chunk: ChunkSource,
        on_outcome: OutcomeSink,
        *,
        mode: DispatchMode | str | None = None,
    ) -> int:
        """Execute tool calls from a chunked response as values complete."""
        settings = self.settings
        return consume_stream(
            get_chunk,
            on_outcome,
            lookup=self.lookup,
            mode=self._mode(mode),
            max_workers=settings.dispatch_max_workers,
            timeout=settings.tool_timeout_seconds,
        )

    async def aprocess_response(
        self,
        response: Any,
        *,
        mode: DispatchMode | str | None = None,
    ) -> list[ExecutionOutcome]:
        return await adispatch_tool_calls(
            parse_tool_calls(response),
            self.lookup,
            mode=self._mode(mode),
            timeout=self.settings.tool_timeout_seconds,
        )

    async def aprocess_stream(
        self,
        chunks: AsyncIterable[bytes | bytearray | str],
        on_outcome: OutcomeSink,
        *,
        mode: DispatchMode | str | None = None,
    ) -> int:
        return await consume_async_stream(
            chunks,
            on_outcome,
            lookup=self.lookup,
            mode=self._mode(mode),
            timeout=self.settings.tool_timeout_seconds,
        )
