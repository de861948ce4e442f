"""Tests for Settings configuration model."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from nova.config import Settings
from nova.errors import ConfigurationError


class TestDefaults:
    def test_price_source_defaults(self):
        s = Settings()
        assert s.coingecko_api_url == "https://api.coingecko.com/api/v3"
        assert s.price_min_interval_ms == 1500
        assert s.price_timeout_seconds == 10.0

    def test_llm_defaults(self):
        s = Settings()
        assert s.claude_model == "sonnet"
        assert s.llm_timeout_seconds == 30.0

    def test_conversation_defaults(self):
        s = Settings()
        assert s.conversation_history_limit == 10
        assert s.default_username == "default_user"
        assert s.research_enabled is False
        assert s.database_path == Path("data/nova.db")

    def test_unknown_setting_rejected(self):
        with pytest.raises(ValidationError):
            Settings(not_a_setting="x")


class TestRequire:
    def test_returns_configured_value(self):
        s = Settings(exa_api_key="exa-123")
        assert s.require("exa_api_key") == "exa-123"

    def test_empty_value_raises(self):
        s = Settings(anthropic_api_key="")
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY is not configured"):
            s.require("anthropic_api_key")

    def test_whitespace_counts_as_empty(self):
        s = Settings(exa_api_key="   ")
        with pytest.raises(ConfigurationError):
            s.require("exa_api_key")
