"""
Application configuration using pydantic-settings.
Loads environment variables for the Redis store and search defaults.
"""
import logging
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = ""
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""
    redis_socket_timeout: float = 5.0

    # Key layout
    geo_key: str = "chargers:geo"
    charger_key_prefix: str = "charger:"

    # Search defaults (Singapore city centre)
    default_lat: float = 1.3521
    default_lng: float = 103.8198
    default_radius_km: float = 30.0
    default_limit: int = 200
    max_limit: int = 1000
    search_timeout_seconds: Optional[float] = None

    # Sync API
    sync_api_key: str = ""

    # App settings
    app_name: str = "EV Charger Finder API"
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def get_redis_url(self) -> str:
        """Build the connection URL, preferring an explicit REDIS_URL."""
        if self.redis_url:
            return self.redis_url
        if self.redis_password:
            return (
                f"redis://default:{self.redis_password}"
                f"@{self.redis_host}:{self.redis_port}"
            )
        return f"redis://{self.redis_host}:{self.redis_port}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the API process and CLI commands."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
