"""Application settings using pydantic-settings.

Loads configuration from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,  # Allow both field name and alias
    )

    # Environment
    environment: Literal["development", "staging", "production", "testing"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for application loggers",
    )

    # LLM Configuration
    # Supports: openai, openrouter, ollama, together, groq, or custom
    llm_provider: Literal["openai", "openrouter", "ollama", "together", "groq", "custom"] = Field(
        default="openai",
        description="LLM provider (openai, openrouter, ollama, together, groq, custom)",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model name (provider-specific format)",
    )
    llm_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="API key for the LLM provider",
        validation_alias=AliasChoices("llm_api_key", "openai_api_key", "openrouter_api_key"),
    )
    llm_base_url: str | None = Field(
        default=None,
        description="Custom base URL for OpenAI-compatible APIs",
    )

    # Per-stage sampling
    enrichment_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    planner_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    validator_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    enrichment_max_tool_rounds: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum tool-call round trips per enrichment turn",
    )
    semantic_validation_enabled: bool = Field(
        default=True,
        description="Ask the model to review plans that pass structural validation",
    )

    # n8n
    n8n_base_url: str = Field(
        default="http://localhost:5678",
        description="n8n instance URL",
        validation_alias=AliasChoices("n8n_base_url", "n8n_url"),
    )
    n8n_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="n8n public API key",
    )
    n8n_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Default HTTP timeout for n8n API calls",
    )
    executor_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Upper bound for the executor's workflow creation",
    )

    @field_validator("n8n_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
