"""Redis-backed session store: token → user id.

Learn: The store is a thin wrapper over three Redis commands (GET, SET,
DEL). Keys are the raw token strings and carry no TTL — expiry lives in
the token's own claims and is not enforced here. Every Redis failure is
translated into the app's error taxonomy at this boundary:

- redis TimeoutError → RequestTimeout (504)
- any other RedisError → SessionStoreError (503)
"""

from typing import Optional

import redis.asyncio as aioredis
import structlog
from fastapi import Request
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from smartbrain.config import Settings
from smartbrain.errors import RequestTimeout, SessionStoreError

logger = structlog.get_logger()


def build_redis(settings: Settings, url: Optional[str] = None) -> aioredis.Redis:
    """Create a Redis client with explicit socket timeouts.

    Defaults to the session database; the rate limiter passes its own URL.
    """
    return aioredis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_timeout_seconds,
        socket_connect_timeout=settings.redis_timeout_seconds,
    )


class SessionStore:
    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    async def get(self, token: str) -> Optional[str]:
        try:
            return await self.redis.get(token)
        except RedisTimeoutError as e:
            logger.error("session_store.timeout", op="get", error=str(e))
            raise RequestTimeout("Session store timed out") from e
        except RedisError as e:
            logger.error("session_store.error", op="get", error=str(e))
            raise SessionStoreError() from e

    async def set(self, token: str, user_id: str) -> None:
        try:
            await self.redis.set(token, user_id)
        except RedisTimeoutError as e:
            logger.error("session_store.timeout", op="set", error=str(e))
            raise RequestTimeout("Session store timed out") from e
        except RedisError as e:
            logger.error("session_store.error", op="set", error=str(e))
            raise SessionStoreError("Unable to store session") from e

    async def delete(self, token: str) -> int:
        """Remove the entry. Returns the number of keys deleted (0 or 1)."""
        try:
            return await self.redis.delete(token)
        except RedisTimeoutError as e:
            logger.error("session_store.timeout", op="delete", error=str(e))
            raise RequestTimeout("Session store timed out") from e
        except RedisError as e:
            logger.error("session_store.error", op="delete", error=str(e))
            raise SessionStoreError("Unable to sign out") from e


def get_session_store(request: Request) -> SessionStore:
    """FastAPI dependency — wraps the app's Redis client."""
    return SessionStore(request.app.state.redis)
