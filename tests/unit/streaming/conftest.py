"""Shared fixtures for streaming module tests."""

import time

import pytest


@pytest.fixture()
def handlers():
    """Name -> handler map used as a plain dict lookup."""

    def bad(args):
        raise ValueError("boom")

    def slow(args):
        time.sleep(args.get("delay", 0.2))
        return args.get("v")

    return {
        "echo": lambda args: {"echoed": args["msg"]},
        "double": lambda args: args["x"] * 2,
        "bad": bad,
        "slow": slow,
    }


@pytest.fixture()
def lookup(handlers):
    """Lookup callable over the handlers fixture."""
    return handlers.get
