"""
Tests for configuration module.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ia.config import Settings, clear_settings_cache, get_settings


class TestSettingsLoading:
    """Tests for Settings loading and validation."""

    def test_settings_loads_from_env(self, mock_env_vars: dict[str, str]) -> None:
        """Test that settings correctly loads from environment variables."""
        settings = get_settings()

        assert settings.OPENAI_API_KEY == "sk-test-fake-openai-key-1234567890"
        assert settings.GEMINI_API_KEY is None
        assert settings.MOCK_STAGE_DELAY_SECONDS == 0
        assert settings.LOG_LEVEL == "DEBUG"

    def test_no_api_key_is_valid(self) -> None:
        """Test that settings load without any key; the job then runs mock mode."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.available_providers == []
        assert settings.language_model_configured is False

    def test_blank_key_counts_as_missing(self) -> None:
        """Test that a whitespace-only key does not enable a provider."""
        settings = Settings(_env_file=None, OPENAI_API_KEY="   ", GEMINI_API_KEY=None)

        assert settings.OPENAI_API_KEY is None
        assert settings.language_model_configured is False

    def test_available_providers_property(self) -> None:
        """Test that available_providers lists configured providers."""
        settings = Settings(_env_file=None, OPENAI_API_KEY="sk-a", GEMINI_API_KEY="g-key")

        assert settings.available_providers == ["gemini", "openai"]
        assert settings.language_model_configured is True

    def test_invalid_tool_mode_rejected(self) -> None:
        """Test that MARKET_TOOL_MODE only accepts known modes."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, MARKET_TOOL_MODE="scrape")

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="VERBOSE")

    def test_max_tool_rounds_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, MAX_TOOL_ROUNDS=0)

    def test_defaults(self) -> None:
        """Test default values when nothing is configured."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.DEFAULT_LLM_PROVIDER == "gemini"
        assert settings.MARKET_TOOL_MODE == "grounding"
        assert settings.GROUNDING_LOOKUP_TIMEOUT_SECONDS == 30.0
        assert settings.MAX_TOOL_ROUNDS == 5
        assert settings.DATABASE_PATH == Path("data/analyses.db")


class TestSettingsHelpers:
    """Tests for Settings helper methods."""

    def test_redacted_display_hides_keys(self) -> None:
        settings = Settings(
            _env_file=None,
            OPENAI_API_KEY="sk-test-fake-openai-key-1234567890",
            GEMINI_API_KEY="short",
        )
        display = settings.redacted_display()

        assert display["OPENAI_API_KEY"] == "sk-test-...7890"
        assert display["GEMINI_API_KEY"] == "***"
        assert "1234567890" not in str(display)

    def test_redacted_display_unset_key(self) -> None:
        settings = Settings(_env_file=None, OPENAI_API_KEY=None, GEMINI_API_KEY=None)
        assert settings.redacted_display()["OPENAI_API_KEY"] is None

    def test_ensure_directories(self, temp_dir: Path) -> None:
        settings = Settings(
            _env_file=None,
            DATABASE_PATH=temp_dir / "db" / "analyses.db",
            EVENT_LOG_DIR=temp_dir / "events",
        )
        settings.ensure_directories()

        assert (temp_dir / "db").is_dir()
        assert (temp_dir / "events").is_dir()


class TestSettingsCache:
    """Tests for settings caching."""

    def test_get_settings_is_cached(self, mock_env_vars: dict[str, str]) -> None:
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, mock_env_vars: dict[str, str]) -> None:
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
