"""Configuration management using pydantic-settings."""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PADDLEGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Signature verification
    webhook_secret: SecretStr | None = Field(
        default=None,
        description="Shared secret for the Paddle notification destination",
    )
    signature_header: str = Field(
        default="Paddle-Signature",
        description="Header carrying the webhook signature",
    )
    signature_tolerance_seconds: int = Field(
        default=300,
        ge=0,
        description="Max age (seconds) of a signed webhook event",
    )
    webhook_paths: tuple[str, ...] = Field(
        default=("/webhooks/paddle",),
        description="Paths that require a valid webhook signature",
    )

    # Receiver
    receiver_host: str = Field(
        default="0.0.0.0",
        description="Host for the webhook receiver",
    )
    receiver_port: int = Field(
        default=8090,
        description="Port for the webhook receiver",
    )
    request_id_header: str = Field(
        default="X-Request-ID",
        description="Header used to propagate request ids",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)",
    )

    @property
    def signature_tolerance(self) -> timedelta:
        """Signature tolerance as a timedelta."""
        return timedelta(seconds=self.signature_tolerance_seconds)

    @property
    def secret_value(self) -> str | None:
        """Unwrapped webhook secret, or None when not configured."""
        if self.webhook_secret is None:
            return None
        return self.webhook_secret.get_secret_value() or None


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
