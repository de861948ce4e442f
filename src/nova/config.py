"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nova.errors import ConfigurationError


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Nova configuration. All values come from environment variables."""

    # Anthropic
    anthropic_api_key: str = Field(default="")
    claude_model: str = Field(default="sonnet")
    llm_max_tokens: int = Field(default=2048)
    llm_timeout_seconds: float = Field(default=30.0)

    # Exa (web search fallback)
    exa_api_key: str = Field(default="")
    exa_api_url: str = Field(default="https://api.exa.ai/search")
    exa_timeout_seconds: float = Field(default=20.0)

    # CoinGecko
    coingecko_api_url: str = Field(default="https://api.coingecko.com/api/v3")
    price_timeout_seconds: float = Field(default=10.0)
    price_min_interval_ms: int = Field(default=1500)

    # Database
    database_path: Path = Field(default=Path("data/nova.db"))

    # Conversation
    conversation_history_limit: int = Field(default=10)
    default_username: str = Field(default="default_user")

    # Research (search + cache knowledge when none is stored)
    research_enabled: bool = Field(default=False)

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))

    model_config = SettingsConfigDict(
        env_file=_env_file(), env_file_encoding="utf-8", extra="forbid"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def require(self, name: str) -> str:
        """Return a string setting, raising ConfigurationError when it is empty."""
        value = getattr(self, name)
        if not str(value).strip():
            msg = f"{name.upper()} is not configured"
            raise ConfigurationError(msg)
        return value


settings = Settings()
