"""Toolcalls exception hierarchy.

Base exceptions for the registry and dispatch layers with correlation ID
support.

Batch APIs (``process_response``, ``process_stream``) never raise these for
individual calls; failures are captured into ``ExecutionOutcome.error``.
They surface only from direct single-call APIs.

Usage:
    from toolcalls.exceptions import ToolNotFoundError

    try:
        registry.invoke("get_weather", {"city": "Oslo"})
    except ToolNotFoundError as e:
        logger.error("Unknown tool %s (correlation_id=%s)", e.name, e.correlation_id)
"""

import uuid


class ToolCallError(Exception):
    """Base exception for all toolcalls errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ToolNotFoundError(ToolCallError):
    """No handler is registered under the requested name."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(f"Tool not found: {name}", **kwargs)


class NoToolCallFoundError(ToolCallError):
    """A response expected to carry a tool call carried none."""

    def __init__(self, message: str = "No tool call found in response", **kwargs):
        super().__init__(message, **kwargs)


class ToolTimeoutError(ToolCallError):
    """A handler did not finish within the configured timeout."""

    def __init__(self, name: str, timeout: float, **kwargs):
        self.name = name
        self.timeout = timeout
        super().__init__(f"Tool {name} timed out after {timeout}s", **kwargs)


class ConfigurationError(ToolCallError):
    """Errors from application configuration."""

    pass
