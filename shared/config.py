"""
Shared configuration management for the Gamepasses Access Layer.
"""

from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="ACCESS_ENV")
    log_level: str = Field(default="info", validation_alias="ACCESS_LOG_LEVEL")

    # Listener; PORT is what hosting platforms inject
    host: str = Field(default="0.0.0.0", validation_alias="ACCESS_HOST")
    port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "ACCESS_PORT"))

    # Upstream Roblox APIs
    roblox_games_url: str = Field(default="https://games.roblox.com", validation_alias="ACCESS_ROBLOX_GAMES_URL")
    roblox_thumbnails_url: str = Field(
        default="https://thumbnails.roblox.com", validation_alias="ACCESS_ROBLOX_THUMBNAILS_URL"
    )
    upstream_timeout_seconds: float = Field(default=10.0, validation_alias="ACCESS_UPSTREAM_TIMEOUT_SECONDS")
    max_pages: int = Field(default=1000, validation_alias="ACCESS_MAX_PAGES")

    # Response cache
    cache_ttl_seconds: float = Field(default=300, validation_alias="ACCESS_CACHE_TTL_SECONDS")
    dedupe_inflight: bool = Field(default=True, validation_alias="ACCESS_DEDUPE_INFLIGHT")

    # Rate limiting
    rate_limit_window_seconds: int = Field(default=900, validation_alias="ACCESS_RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_requests: int = Field(default=100, validation_alias="ACCESS_RATE_LIMIT_MAX_REQUESTS")
    # Reverse proxies in front of the service; 0 uses the socket peer only
    trusted_proxy_hops: int = Field(default=1, validation_alias="ACCESS_TRUSTED_PROXY_HOPS")

    # HTTP
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"], validation_alias="ACCESS_CORS_ALLOW_ORIGINS")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "gamepasses"


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
