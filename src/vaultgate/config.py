"""Application configuration using pydantic-settings.

Values are read from the environment (or a local .env file). The core never
parses these itself; entry points hand them to the components they build.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/vaultgate.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Key / Notification Service
    # ======================
    key_service: str = Field(
        default="dryrun", description="Key service backend: tatum or dryrun"
    )
    tatum_api_key: str = Field(default="", description="Tatum API key")
    tatum_base_url: str = Field(
        default="https://api.tatum.io", description="Tatum API base URL"
    )
    tatum_net_type: str = Field(
        default="mainnet", description="Subscription network type: mainnet or testnet"
    )
    request_timeout: float = Field(
        default=15.0, description="Timeout in seconds for Key/Notification Service calls"
    )
    webhook_url: str = Field(
        default="", description="Callback URL registered with address subscriptions"
    )

    # ======================
    # Allocation
    # ======================
    network_code: str = Field(
        default="bitcoin", description="Network code used by the one-shot allocator"
    )

    # ======================
    # Encryption
    # ======================
    mnemonic_enc_key: Optional[str] = Field(
        default=None,
        description="32-byte AES-256-GCM key for secrets at rest (64 hex chars or base64)",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def notifications_enabled(self) -> bool:
        """Check if a webhook callback URL is configured."""
        return bool(self.webhook_url)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "key_service": self.key_service,
            "tatum": {
                "base_url": self.tatum_base_url,
                "net_type": self.tatum_net_type,
                "api_key": "***" if self.tatum_api_key else "(not set)",
            },
            "webhook_url": self.webhook_url or "(not set)",
            "network_code": self.network_code,
            "encryption_key": "***" if self.mnemonic_enc_key else "(not set)",
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
