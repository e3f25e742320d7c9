"""Configuration loading for the jobhook callback receiver.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Refuse the development secret in production
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Development fallback only; production deployments must set CALLBACK_SECRET.
DEFAULT_CALLBACK_SECRET = "JLwe345A2Wjd45"


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Signature verification
    callback_secret: str = Field(
        default=DEFAULT_CALLBACK_SECRET,
        description="Shared HMAC secret agreed with the partner",
    )
    signature_tolerance_seconds: int = Field(
        default=300,
        description="Replay window for signature timestamps in seconds",
    )
    environment: Literal["development", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Webhook server
    webhook_host: str = Field(
        default="0.0.0.0",
        description="Host to listen on for webhook server",
    )
    webhook_port: int = Field(
        default=3000,
        description="Port to listen on for webhook server",
    )
    max_body_bytes: int = Field(
        default=1024 * 1024,
        description="Largest accepted request body in bytes",
    )
    test_endpoint_enabled: bool = Field(
        default=True,
        description="Serve POST /api/v1/job-callback/test",
    )

    # Forwarding sink
    forward_url: str = Field(
        default="",
        description="Downstream URL receiving every recorded callback (disabled if empty)",
    )
    forward_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for forwarded requests in seconds",
    )
    forward_sign: bool = Field(
        default=True,
        description="Sign forwarded payloads with the callback secret",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("callback_secret")
    @classmethod
    def validate_callback_secret(cls, v: str) -> str:
        """Ensure the secret is not empty."""
        if not v:
            raise ValueError("callback_secret must not be empty")
        return v

    @field_validator("signature_tolerance_seconds")
    @classmethod
    def validate_tolerance(cls, v: int) -> int:
        """Ensure replay window is positive."""
        if v <= 0:
            raise ValueError("signature_tolerance_seconds must be positive")
        return v

    @field_validator("webhook_port")
    @classmethod
    def validate_webhook_port(cls, v: int) -> int:
        """Ensure webhook port is in valid range."""
        if v <= 0 or v > 65535:
            raise ValueError("webhook_port must be between 1 and 65535")
        return v

    @field_validator("max_body_bytes")
    @classmethod
    def validate_max_body_bytes(cls, v: int) -> int:
        """Ensure body limit is positive."""
        if v <= 0:
            raise ValueError("max_body_bytes must be positive")
        return v

    @field_validator("forward_timeout_seconds")
    @classmethod
    def validate_forward_timeout(cls, v: float) -> float:
        """Ensure forwarding timeout is positive."""
        if v <= 0:
            raise ValueError("forward_timeout_seconds must be positive")
        return v

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse the development fallback secret in production."""
        if self.environment == "production" and self.uses_default_secret:
            raise ValueError("CALLBACK_SECRET must be set in production")
        return self

    @property
    def uses_default_secret(self) -> bool:
        return self.callback_secret == DEFAULT_CALLBACK_SECRET


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["DEFAULT_CALLBACK_SECRET", "Settings", "load_settings"]
