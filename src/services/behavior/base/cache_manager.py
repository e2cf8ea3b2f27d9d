"""
Cache manager for behaviour services.
Extends the base cache manager with search-specific keys.
"""

import logging
from typing import Optional, Dict

from ....core.config import settings
from ....utils.cache import CacheManager

logger = logging.getLogger(__name__)

CACHE_KEY_SEARCH_PREFIX = "search:"


class BehaviorCacheManager(CacheManager):
    """
    Cache manager for behaviour services.
    Search responses are the only cached payloads; every behaviour
    record write clears them.
    """

    def __init__(self, redis_client, prefix: str = None):
        super().__init__(redis_client, prefix or settings.cache_prefix)
        self.logger = logger

    def search_key(self, query_hash: str) -> str:
        return f"{CACHE_KEY_SEARCH_PREFIX}{query_hash}"

    async def get_search_results(self, query_hash: str) -> Optional[Dict]:
        """
        Get cached search results.

        Args:
            query_hash: Search query hash

        Returns:
            Optional[Dict]: Cached search results or None
        """
        return await self.get(self.search_key(query_hash))

    async def set_search_results(self, query_hash: str, data: Dict, expire: int = None):
        """
        Cache search results.

        Args:
            query_hash: Search query hash
            data: Search results to cache
            expire: Expiration time in seconds, defaults to SEARCH_CACHE_SECONDS
        """
        await self.set(self.search_key(query_hash), data, expire or settings.search_cache_seconds)

    async def clear_search_cache(self) -> int:
        """Drop every cached search response."""
        cleared = await self.clear_pattern(f"{CACHE_KEY_SEARCH_PREFIX}*")
        self.logger.info(f"Cleared {cleared} search cache entries")
        return cleared
