"""Redis client for search result caching.

Every method degrades to a no-op when Redis is unreachable; the database
stays the source of truth. Cached search results are keyed by a global
search generation that is bumped after every committed note change, so a
reader never sees a result list older than its own writes.
"""

import hashlib
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

GENERATION_KEY = "search:generation"


class RedisClient:
    """Redis client for caching."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.redis: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        try:
            self.redis = redis.from_url(
                self.settings.redis_url,
                max_connections=self.settings.redis_max_connections,
                decode_responses=True
            )
            # Test connection
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.redis = None
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    @property
    def is_connected(self) -> bool:
        return self.redis is not None

    async def ping(self) -> bool:
        if not self.redis:
            return False
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.error(f"Redis PING error: {e}")
            return False

    async def get(self, key: str) -> Optional[str]:
        """Get value from Redis."""
        if not self.redis:
            return None
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        """Set value in Redis with optional expiration."""
        if not self.redis:
            return False
        try:
            if expire:
                return await self.redis.setex(key, expire, value)
            else:
                return await self.redis.set(key, value)
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from Redis."""
        if not self.redis:
            return False
        try:
            result = await self.redis.delete(key)
            return result > 0
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    # Search generation
    async def get_search_generation(self) -> Optional[int]:
        """Current search generation, None when Redis is unavailable."""
        if not self.redis:
            return None
        try:
            value = await self.redis.get(GENERATION_KEY)
            return int(value) if value else 0
        except Exception as e:
            logger.error(f"Failed to read search generation: {e}")
            return None

    async def bump_search_generation(self) -> Optional[int]:
        """Invalidate every cached search result."""
        if not self.redis:
            return None
        try:
            return await self.redis.incr(GENERATION_KEY)
        except Exception as e:
            logger.error(f"Failed to bump search generation: {e}")
            return None

    @staticmethod
    def search_cache_key(generation: int, scope: str, params: Dict[str, Any]) -> str:
        digest = hashlib.sha256(
            json.dumps(params, sort_keys=True, default=str).encode("utf-8")
        ).hexdigest()
        return f"search:{generation}:{scope}:{digest}"

    async def cache_search_results(
        self, key: str, results: Dict[str, Any], expire: Optional[int] = None
    ) -> bool:
        """Cache ranked note ids, 5 minutes by default."""
        expire = expire or self.settings.search_cache_ttl_seconds
        try:
            return await self.set(key, json.dumps(results), expire)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to cache search results: {e}")
            return False

    async def get_cached_search(self, key: str) -> Optional[Dict[str, Any]]:
        """Get cached search results."""
        cached = await self.get(key)
        if not cached:
            return None
        try:
            return json.loads(cached)
        except ValueError as e:
            logger.error(f"Failed to decode cached search: {e}")
            return None
