"""
Redis connection management.
One asyncio client (with its connection pool) per process, opened in the
application lifespan and injected into request handlers.
"""
import logging
from urllib.parse import urlsplit, urlunsplit
from fastapi import FastAPI, Request
import redis.asyncio as redis
from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> redis.Redis:
    """Create a client from settings. No connection is made until first use."""
    return redis.from_url(
        settings.get_redis_url(),
        decode_responses=True,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )


async def init_redis(app: FastAPI, settings: Settings = None) -> redis.Redis:
    """Attach a Redis client to the application state."""
    settings = settings or get_settings()
    client = create_redis_client(settings)
    app.state.redis = client
    logger.info("Redis client initialised for %s", redact_url(settings.get_redis_url()))
    return client


def redact_url(url: str) -> str:
    """Hide the password in a redis:// URL for logging."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    if parts.username:
        netloc = f"{parts.username}:***@{netloc}"
    else:
        netloc = f":***@{netloc}"
    return urlunsplit(parts._replace(netloc=netloc))


async def close_redis(app: FastAPI) -> None:
    """Close the application's Redis client, if any."""
    client = getattr(app.state, "redis", None)
    if client is not None:
        await client.aclose()
        app.state.redis = None
        logger.info("Redis client closed")


async def get_redis(request: Request) -> redis.Redis:
    """Dependency for getting the shared Redis client."""
    return request.app.state.redis
