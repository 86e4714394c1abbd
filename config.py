"""
Configuration management for the Discord REST client

All pipeline tunables live here so that each client instance can be built
from environment variables or overridden explicitly in tests.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseSettings):
    """Client configuration with environment variable support (DISCORD_ prefix)."""

    # Discord API settings
    api_base_url: str = "https://discord.com/api/v10"
    token: Optional[str] = None  # Passed through verbatim as the Authorization header
    user_agent: str = "DiscordLiteClient/1.0"

    # Request pipeline
    min_request_interval: float = 0.5   # Seconds between dispatches (2 req/s)
    cache_ttl: float = 60.0             # Seconds a successful response stays cached
    max_retries: int = 3                # Retries after the initial attempt
    retry_base_delay: float = 1.0       # Linear backoff: base * attempt number
    default_retry_after: float = 1.0    # Cool-down when a 429 has no Retry-After

    # Transport
    request_timeout: float = 30.0
    connect_timeout: float = 10.0
    connection_limit: int = 100

    # Convenience endpoints
    default_message_limit: int = 30
    default_member_limit: int = 50

    # Application settings
    log_level: str = "INFO"
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_prefix="DISCORD_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def requests_per_second(self) -> float:
        """Dispatch ceiling implied by the minimum request interval."""
        if self.min_request_interval <= 0:
            return float('inf')
        return 1 / self.min_request_interval


# Global configuration instance - lazily initialized to avoid import-time errors
_config = None

def get_config() -> ClientConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ClientConfig()  # type: ignore
    return _config
