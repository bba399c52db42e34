"""
Configuration management for the exercise grader.

All configuration comes from environment variables or .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from exercise_grader.config.constants import (
    DATA_DIR,
    DEFAULT_LANGUAGE,
    DEFAULT_STORAGE_QUOTA_BYTES,
    DEFAULT_THINKING_BUDGET,
    GEMINI_DEFAULT_MODEL,
    STORAGE_KEY,
    SUPPORTED_LANGUAGES,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EXERCISE_GRADER_",
        case_sensitive=False,
        extra="ignore",
    )

    # AI Provider
    ai_provider: str = "gemini"  # "gemini", "openai", "openrouter"

    # API Keys (checked when a provider is created)
    gemini_api_key: str = ""
    openai_api_key: str = ""
    openrouter_api_key: str = ""

    # Models
    gemini_model: str = GEMINI_DEFAULT_MODEL
    openai_model: Optional[str] = "gpt-4o"
    openrouter_model: Optional[str] = None

    # Gemini thinking budget for step-by-step math reasoning
    thinking_budget: int = Field(DEFAULT_THINKING_BUDGET, ge=0)

    # Language of prompts, feedback and user-facing messages
    language: str = DEFAULT_LANGUAGE

    # Storage
    data_dir: str = DATA_DIR
    storage_key: str = STORAGE_KEY
    storage_quota_bytes: int = Field(DEFAULT_STORAGE_QUOTA_BYTES, gt=0)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Validators
    @field_validator("ai_provider")
    @classmethod
    def validate_ai_provider(cls, v: str) -> str:
        """Validate AI provider is a supported value."""
        valid_providers = ["gemini", "openai", "openrouter"]
        if v.lower() not in valid_providers:
            raise ValueError(f"ai_provider must be one of: {', '.join(valid_providers)}")
        return v.lower()

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        if v.lower() not in SUPPORTED_LANGUAGES:
            raise ValueError(f"language must be one of: {', '.join(SUPPORTED_LANGUAGES)}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings from environment."""
    get_settings.cache_clear()
    return get_settings()
