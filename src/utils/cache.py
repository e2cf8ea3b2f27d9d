from typing import Any, Optional
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)

# Cache duration constants
MINUTE = 60
HOUR = MINUTE * 60
DAY = HOUR * 24

class RecordEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, UUID):
            # Convert UUID to string
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        return super().default(obj)

class CacheManager:
    def __init__(self, redis_client, prefix: str = "cache"):
        self.redis = redis_client
        self.prefix = prefix

    def _get_key(self, key: str) -> str:
        """Generate prefixed cache key"""
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get data from cache"""
        if self.redis is None:
            return None
        try:
            data = await self.redis.get(self._get_key(key))
            return json.loads(data) if data else None
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    async def set(
        self,
        key: str,
        data: Any,
        expire: int = HOUR,  # Default 1 hour
    ) -> bool:
        """Set data in cache with expiration"""
        if self.redis is None:
            return False
        try:
            serialized_data = json.dumps(data, cls=RecordEncoder)
            await self.redis.set(
                self._get_key(key),
                serialized_data,
                ex=expire
            )
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete a specific key from cache

        Args:
            key: The key to delete

        Returns:
            bool: True if key was deleted, False otherwise
        """
        if self.redis is None:
            return False
        try:
            result = await self.redis.delete(self._get_key(key))
            return result > 0
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    async def set_background(
        self,
        background_tasks: BackgroundTasks,
        key: str,
        data: Any,
        expire: int = HOUR,
    ):
        """Set cache in background task"""
        background_tasks.add_task(self.set, key, data, expire)

    async def exists(self, key: str) -> bool:
        """Check if key exists in cache"""
        if self.redis is None:
            return False
        try:
            return bool(await self.redis.exists(self._get_key(key)))
        except Exception as e:
            logger.warning(f"Cache exists error for {key}: {e}")
            return False

    async def clear_pattern(self, pattern: str) -> int:
        """Clear all cache entries matching a pattern

        Args:
            pattern: Pattern to match (e.g., "search:*")

        Returns:
            int: Number of keys deleted
        """
        if self.redis is None:
            return 0
        try:
            keys = await self.redis.keys(self._get_key(pattern))
            if keys:
                return await self.redis.delete(*keys)
            return 0
        except Exception as e:
            logger.warning(f"Cache clear_pattern error for {pattern}: {e}")
            return 0

    async def health_check(self) -> bool:
        """Ping the backing Redis instance"""
        if self.redis is None:
            return False
        try:
            return bool(await self.redis.ping())
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            return False
