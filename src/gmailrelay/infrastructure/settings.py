"""Application settings using Pydantic Settings for configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gmailrelay.application.sender_filter import parse_allow_list


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Gmail Relay"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Gmail OAuth (refresh token obtained once, out of band)
    gmail_client_id: str = ""
    gmail_client_secret: SecretStr = Field(default=SecretStr(""))
    gmail_refresh_token: SecretStr = Field(default=SecretStr(""))
    gmail_api_base: str = "https://gmail.googleapis.com/gmail/v1"
    oauth_token_endpoint: str = "https://oauth2.googleapis.com/token"

    # Downstream agent webhook
    openclaw_webhook_url: str = "http://localhost:18789"
    openclaw_hook_path: str = "/hooks/agent"
    openclaw_hook_token: SecretStr = Field(default=SecretStr(""))

    # Comma-separated sender addresses; empty allows everyone
    allowed_senders: str = ""

    # Delivery retry
    delivery_max_retries: int = Field(default=1, ge=1)
    delivery_backoff_base_seconds: float = 1.0
    delivery_backoff_cap_seconds: float = 10.0

    http_timeout_seconds: float = 30.0

    # Cursor storage
    cursor_db_path: str = "/app/data/cursors.db"

    @computed_field
    @property
    def allowed_sender_set(self) -> frozenset[str]:
        """Normalized allow-list."""
        return parse_allow_list(self.allowed_senders)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
