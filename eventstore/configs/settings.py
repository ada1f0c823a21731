"""Centralized settings management for the EventStore client."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from eventstore.errors import ConfigError

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class EventStoreConfig:
    """
    Connection settings for one EventStore API.

    Immutable once built. All three values are mandatory; an empty or
    whitespace-only value raises ConfigError.
    """

    api_url: str
    api_version: str
    auth_token: str

    def __post_init__(self):
        """Reject missing mandatory values."""
        for name in ("api_url", "api_version", "auth_token"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{name} is required")

    def __repr__(self) -> str:
        return (
            f"EventStoreConfig(api_url={self.api_url!r}, "
            f"api_version={self.api_version!r}, auth_token='**********')"
        )

    @property
    def base_url(self) -> str:
        """API URL without trailing slashes."""
        return self.api_url.rstrip("/")

    def endpoint(self, suffix: str) -> str:
        """
        Build the full URL for an API operation.

        Args:
            suffix: Operation path, e.g. "/stream" or "/status/ping"

        Returns:
            "{base_url}/api/{api_version}{suffix}"
        """
        return f"{self.base_url}/api/{self.api_version}{suffix}"


class Settings(BaseSettings):
    """
    Client settings powered by pydantic-settings.

    Loads configuration from EVENTSTORE_* environment variables and an
    optional .env file in the working directory.
    """

    # -------------------------------------------------------------------------
    # CONNECTION
    # -------------------------------------------------------------------------
    API_URL: str = ""
    API_VERSION: str = ""
    AUTH_TOKEN: SecretStr | None = None

    # -------------------------------------------------------------------------
    # TRANSPORT
    # -------------------------------------------------------------------------
    TIMEOUT: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)

    # -------------------------------------------------------------------------
    # LOGGING
    # -------------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_prefix="EVENTSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        # Allow extra fields in .env but ignore them in the model
        extra="ignore",
    )

    def to_config(self) -> EventStoreConfig:
        """
        Build the immutable client configuration.

        Returns
        -------
        EventStoreConfig
            Configuration for EventStoreClient.

        Raises
        ------
        ConfigError
            If the URL, version or token is missing.
        """
        token = self.AUTH_TOKEN.get_secret_value() if self.AUTH_TOKEN else ""
        return EventStoreConfig(
            api_url=self.API_URL,
            api_version=self.API_VERSION,
            auth_token=token,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached client settings.

    Returns
    -------
    Settings
        The singleton settings instance.
    """
    return Settings()
