"""Shared test fixtures for toolcalls.

Provides settings and a populated ToolRegistry used across the unit tests.
"""

import logging
import time
from collections.abc import Generator

import pytest

from toolcalls.settings import Settings, get_settings
from toolcalls.tools.registry import ToolRegistry

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    """Make every test read settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment="testing",
        dispatch_mode="sequential",
        dispatch_max_workers=None,
        tool_timeout_seconds=None,
    )


@pytest.fixture
def restore_root_logger() -> Generator[None, None, None]:
    """Undo configure_logging() side effects on the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# =============================================================================
# REGISTRY
# =============================================================================


@pytest.fixture
def registry(test_settings: Settings) -> ToolRegistry:
    """Registry with a small set of well-behaved and failing tools."""
    reg = ToolRegistry(settings=test_settings)

    reg.register("echo", lambda args: {"echoed": args["msg"]})
    reg.register("upper", lambda args: {"out": args["s"].upper()})

    def bad(args):
        raise RuntimeError("fail")

    reg.register("bad", bad)

    def slow(args):
        time.sleep(args.get("delay", 0.2))
        return {"ok": args.get("v")}

    reg.register("slow", slow)
    return reg
