"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Every value is optional: with no LLM key configured the job runs the
degraded mock analysis instead of the real pipeline.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Optional:
        OPENAI_API_KEY / GEMINI_API_KEY: Language model credentials
        DEFAULT_LLM_PROVIDER: Provider used when a stage model does not imply one
        MODEL_*: Per-stage model names
        MARKET_TOOL_MODE: Market analysis retrieval mode (grounding|static|none)
        DATABASE_PATH: SQLite file for analysis records
        EVENT_LOG_DIR: Directory for the progress event log
        LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM API Keys
    OPENAI_API_KEY: str | None = Field(default=None, description="OpenAI API key")
    GEMINI_API_KEY: str | None = Field(default=None, description="Google Gemini API key")

    DEFAULT_LLM_PROVIDER: Literal["gemini", "openai"] = Field(
        default="gemini",
        description="Provider used for stages whose model name does not imply one",
    )

    # Per-stage models
    MODEL_SUMMARY: str = Field(
        default="gemini-2.0-flash-lite",
        description="Model for the summary stage (short, cheap)",
    )
    MODEL_TARGET_USER: str = Field(
        default="gemini-2.0-flash",
        description="Model for the target user stage",
    )
    MODEL_MARKET_ANALYSIS: str = Field(
        default="gemini-2.0-flash",
        description="Model for the market analysis stage (grounding capable)",
    )
    MODEL_STRATEGY: str = Field(
        default="gemini-2.0-flash",
        description="Model for the strategy stage",
    )
    MODEL_SCORING: str = Field(
        default="gemini-2.0-flash",
        description="Model for the scoring stage",
    )
    OPENAI_FALLBACK_MODEL: str = Field(
        default="gpt-4o-mini",
        description="Model used when a Gemini stage is routed to OpenAI",
    )

    LLM_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    LLM_TIMEOUT_SECONDS: float = Field(
        default=60.0, gt=0.0, description="Upper bound for a single model call"
    )

    # Market analysis
    MARKET_TOOL_MODE: Literal["grounding", "static", "none"] = Field(
        default="grounding", description="Market analysis retrieval mode"
    )
    GROUNDING_LOOKUP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0.0)
    MAX_TOOL_ROUNDS: int = Field(default=5, ge=1, le=20)

    # Job
    MOCK_STAGE_DELAY_SECONDS: float = Field(
        default=0.5, ge=0.0, description="Simulated per-stage delay in mock mode"
    )

    # Storage
    DATABASE_PATH: Path = Field(default=Path("data/analyses.db"))
    EVENT_LOG_DIR: Path = Field(default=Path("data/events"))

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @field_validator("OPENAI_API_KEY", "GEMINI_API_KEY")
    @classmethod
    def blank_key_is_missing(cls, v: str | None) -> str | None:
        """Treat empty or whitespace keys as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def openai_api_key(self) -> str | None:
        """Get OpenAI API key (lowercase alias)."""
        return self.OPENAI_API_KEY

    @property
    def gemini_api_key(self) -> str | None:
        """Get Gemini API key (lowercase alias)."""
        return self.GEMINI_API_KEY

    @property
    def default_provider(self) -> str:
        """Get the default provider (lowercase alias)."""
        return self.DEFAULT_LLM_PROVIDER

    @property
    def available_providers(self) -> list[str]:
        """Return list of configured LLM providers."""
        providers: list[str] = []
        if self.GEMINI_API_KEY:
            providers.append("gemini")
        if self.OPENAI_API_KEY:
            providers.append("openai")
        return providers

    @property
    def language_model_configured(self) -> bool:
        """True when at least one provider can serve real analyses."""
        return bool(self.available_providers)

    def ensure_directories(self) -> None:
        """Create database and event log directories if they don't exist."""
        self.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
        self.EVENT_LOG_DIR.mkdir(parents=True, exist_ok=True)

    def redacted_display(self) -> dict[str, str | int | float | None]:
        """Return settings with API keys redacted for display."""
        def redact(value: str | None) -> str | None:
            if value is None:
                return None
            return f"{value[:8]}...{value[-4:]}" if len(value) > 12 else "***"

        return {
            "OPENAI_API_KEY": redact(self.OPENAI_API_KEY),
            "GEMINI_API_KEY": redact(self.GEMINI_API_KEY),
            "DEFAULT_LLM_PROVIDER": self.DEFAULT_LLM_PROVIDER,
            "MODEL_SUMMARY": self.MODEL_SUMMARY,
            "MODEL_TARGET_USER": self.MODEL_TARGET_USER,
            "MODEL_MARKET_ANALYSIS": self.MODEL_MARKET_ANALYSIS,
            "MODEL_STRATEGY": self.MODEL_STRATEGY,
            "MODEL_SCORING": self.MODEL_SCORING,
            "OPENAI_FALLBACK_MODEL": self.OPENAI_FALLBACK_MODEL,
            "LLM_TEMPERATURE": self.LLM_TEMPERATURE,
            "LLM_TIMEOUT_SECONDS": self.LLM_TIMEOUT_SECONDS,
            "MARKET_TOOL_MODE": self.MARKET_TOOL_MODE,
            "GROUNDING_LOOKUP_TIMEOUT_SECONDS": self.GROUNDING_LOOKUP_TIMEOUT_SECONDS,
            "MAX_TOOL_ROUNDS": self.MAX_TOOL_ROUNDS,
            "MOCK_STAGE_DELAY_SECONDS": self.MOCK_STAGE_DELAY_SECONDS,
            "DATABASE_PATH": str(self.DATABASE_PATH),
            "EVENT_LOG_DIR": str(self.EVENT_LOG_DIR),
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
