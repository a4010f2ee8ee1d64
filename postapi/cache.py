import json
import logging

import redis.asyncio as redis

from postapi.config import settings

logger = logging.getLogger(__name__)

POST_LIST_PREFIX = "posts:list"

# Session.info key marking that post pages must be dropped again after commit.
POSTS_STALE_FLAG = "posts_cache_stale"


def post_list_key(page: int, page_size: int) -> str:
    return f"{POST_LIST_PREFIX}:{page}:{page_size}"


class FeedCache:
    """
    Redis cache-aside store for rendered feed pages.

    Redis is optional.  With no connection (or on any Redis error) reads
    miss and writes are skipped, so callers always fall through to the
    database.  Only read models are cached here; identity and
    authorization decisions never are.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None

    async def connect(self) -> None:
        """Open the connection pool at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:
            logger.warning("Redis ping failed, feed cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> list | dict | None:
        if not self._redis:
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.warning("Cache GET failed for key=%r: %s", key, exc)
            return None
        return json.loads(data) if data is not None else None

    async def set(self, key: str, value: list | dict, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.warning("Cache SET failed for key=%r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete every key matching *pattern* (SCAN, not KEYS)."""
        if not self._redis:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        except Exception as exc:
            logger.warning("Cache invalidation failed for pattern=%r: %s", pattern, exc)

    async def invalidate_posts(self, session=None) -> None:
        """
        Drop every cached post page.

        Called after post writes, cascade deletes and author profile
        changes, since any of them can change page membership or the
        author fields joined into each view.

        When *session* is given its transaction is still open, and a reader
        may re-cache the old rows before it commits.  The session is flagged
        so ``commit_session`` drops the pages once more after the commit.
        """
        if session is not None:
            session.info[POSTS_STALE_FLAG] = True
        await self.delete_pattern(f"{POST_LIST_PREFIX}:*")


# Module-level singleton shared across all request handlers.
cache = FeedCache()
