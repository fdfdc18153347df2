"""
Core configuration module for the Text Generation Gateway.

This module provides centralized configuration management using Pydantic Settings.
Service configuration is loaded from environment variables with the
TEXTGEN_GATEWAY_ prefix. Provider credentials keep their conventional
un-prefixed names (OPENAI_API_KEY, DEEPSEEK_API_KEY,
GOOGLE_GENERATIVE_AI_API_KEY) so existing deployments keep working.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All service fields use the TEXTGEN_GATEWAY_ prefix.
    Example: TEXTGEN_GATEWAY_LOG_LEVEL=DEBUG
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="textgen-gateway",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated allowed origins outside development",
    )

    # =========================================================================
    # Provider Credentials
    # SecretStr masks values in logs/repr, use .get_secret_value() to access
    # =========================================================================
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "OPENAI_API_KEY", "TEXTGEN_GATEWAY_OPENAI_API_KEY"
        ),
        description="OpenAI API key for GPT models",
    )
    deepseek_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "DEEPSEEK_API_KEY", "TEXTGEN_GATEWAY_DEEPSEEK_API_KEY"
        ),
        description="DeepSeek API key",
    )
    google_generative_ai_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "GOOGLE_GENERATIVE_AI_API_KEY",
            "TEXTGEN_GATEWAY_GOOGLE_GENERATIVE_AI_API_KEY",
        ),
        description="Google AI Studio API key for Gemini models",
    )

    # =========================================================================
    # Provider Endpoints
    # =========================================================================
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Optional OpenAI-compatible endpoint (proxies, Azure)",
    )
    deepseek_base_url: str = Field(
        default="https://api.deepseek.com",
        description="DeepSeek OpenAI-compatible endpoint",
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )

    # =========================================================================
    # Timeout Configuration
    # =========================================================================
    upstream_timeout_seconds: float = Field(
        default=120.0,
        ge=1.0,
        le=600.0,
        description="HTTP timeout applied to every upstream provider call",
    )

    model_config = SettingsConfigDict(
        env_prefix="TEXTGEN_GATEWAY_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and upper-case the log level."""
        level = v.upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {sorted(valid_levels)}")
        return level

    @field_validator("deepseek_base_url", "gemini_api_base")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate endpoint URL format and drop trailing slashes."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint URL must start with http:// or https://")
        return v.rstrip("/")

    def get_cors_origins(self) -> list[str]:
        """
        Get CORS allowed origins based on environment.

        - Development: Allow all origins (["*"])
        - Staging/Production: Use cors_origins (comma-separated)
        - If not configured outside development: Empty list
        """
        if self.environment == "development":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.
    Call get_settings.cache_clear() to reload configuration from the
    environment.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
