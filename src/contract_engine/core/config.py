"""Configuration Management."""

import os
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _default_api_key() -> str:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="CONTRACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Generative backend
    llm_provider: str = Field(default="gemini", description="Generative provider name")
    gemini_api_key: str = Field(default_factory=_default_api_key, description="Gemini API key")
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model name")
    gemini_temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Model temperature")
    gemini_max_tokens: int = Field(default=4096, gt=0, description="Max output tokens")
    backend_timeout: float = Field(default=60.0, gt=0, description="Generation call timeout (seconds)")
    backend_workers: int = Field(default=4, gt=0, description="Generation worker threads")

    # Circuit breaker
    breaker_threshold: int = Field(default=3, gt=0, description="Failures before the circuit opens")
    breaker_cooldown_ms: int = Field(default=60_000, gt=0, description="Open-circuit cooldown (ms)")

    # Platform API
    platform_url: str = Field(default="http://localhost:3000", description="Platform REST API URL")
    platform_timeout: float = Field(default=5.0, description="Platform request timeout")

    # Caching
    cache_size: int = Field(default=500, gt=0, description="In-memory cache max size")
    merged_contract_ttl: int = Field(default=300, gt=0, description="Merged contract TTL (seconds)")
    analytics_cache_ttl: int = Field(default=120, gt=0, description="Analytics summary TTL (seconds)")

    # Validation
    docs_dir: str | None = Field(default=None, description="Directory holding DSL reference docs")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    @property
    def backend_enabled(self) -> bool:
        """Generation is only attempted with the gemini provider and a key."""
        return self.llm_provider.lower() == "gemini" and bool(self.gemini_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
