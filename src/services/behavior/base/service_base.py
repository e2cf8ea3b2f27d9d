"""
Base service class for behaviour services.
Provides common functionality and infrastructure.
"""

import logging
from typing import Optional
from abc import ABC, abstractmethod
from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from .cache_manager import BehaviorCacheManager
from .validators import BehaviorValidator

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """
    Base class for all behaviour services.
    Provides common functionality for caching, validation, and database access.
    """

    def __init__(self, cache_manager: BehaviorCacheManager,
                 db_session: Optional[AsyncSession] = None,
                 validator: Optional[BehaviorValidator] = None):
        """
        Initialize the base service.

        Args:
            cache_manager: Instance of BehaviorCacheManager
            db_session: Optional database session
            validator: Optional validator instance
        """
        self.cache = cache_manager
        self.db_session = db_session
        self.validator = validator or BehaviorValidator()
        self.logger = logger

    @abstractmethod
    def get_service_name(self) -> str:
        """
        Get the service name for logging and caching.

        Returns:
            str: The service name
        """
        pass

    async def _cache_get(self, cache_key: str) -> Optional[dict]:
        """
        Get data from cache with error handling.

        Args:
            cache_key: The cache key to retrieve

        Returns:
            Optional[dict]: Cached data or None if not found
        """
        try:
            cached_data = await self.cache.get(cache_key)
            if cached_data:
                self.logger.info(f"[{self.get_service_name()}] Cache hit for key: {cache_key}")
                return cached_data
            return None
        except Exception as e:
            self.logger.error(f"[{self.get_service_name()}] Cache get error for key {cache_key}: {str(e)}")
            return None

    async def _cache_set(self, cache_key: str, data: dict, expire: int,
                         background_tasks: Optional[BackgroundTasks] = None):
        """
        Set data in cache with error handling.

        Args:
            cache_key: The cache key
            data: The data to cache
            expire: Expiration time in seconds
            background_tasks: Optional background tasks for async caching
        """
        try:
            if background_tasks:
                await self.cache.set_background(background_tasks, cache_key, data, expire)
            else:
                await self.cache.set(cache_key, data, expire)
            self.logger.info(f"[{self.get_service_name()}] Data cached with key: {cache_key}")
        except Exception as e:
            self.logger.error(f"[{self.get_service_name()}] Cache set error for key {cache_key}: {str(e)}")

    def _handle_service_error(self, error: Exception, context: str = ""):
        """
        Handle service errors with proper logging.

        Args:
            error: The exception that occurred
            context: Context information about the error
        """
        error_msg = f"[{self.get_service_name()}] {context}: {str(error)}"
        self.logger.error(error_msg)

        # Re-raise the error for upstream handling
        raise error
