"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from toolcalls.settings import Settings, get_settings


class TestSettings:
    """Tests for Settings defaults and environment loading."""

    def test_defaults(self, monkeypatch):
        for var in ("DISPATCH_MODE", "DISPATCH_MAX_WORKERS", "TOOL_TIMEOUT_SECONDS", "LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)

        settings = Settings(_env_file=None)

        assert settings.dispatch_mode == "sequential"
        assert settings.dispatch_max_workers is None
        assert settings.tool_timeout_seconds is None
        assert settings.log_level == "INFO"
        assert settings.stream_chunk_size == 4096

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("DISPATCH_MODE", "concurrent")
        monkeypatch.setenv("DISPATCH_MAX_WORKERS", "4")
        monkeypatch.setenv("TOOL_TIMEOUT_SECONDS", "2.5")

        settings = Settings(_env_file=None)

        assert settings.dispatch_mode == "concurrent"
        assert settings.dispatch_max_workers == 4
        assert settings.tool_timeout_seconds == 2.5

    def test_invalid_values_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, dispatch_max_workers=0)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, tool_timeout_seconds=0)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, dispatch_mode="parallel")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
