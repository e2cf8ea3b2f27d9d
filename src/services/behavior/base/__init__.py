"""
Base module for behaviour services.
Contains common infrastructure and base classes.
"""

from .service_base import BaseService
from .cache_manager import BehaviorCacheManager
from .validators import BehaviorValidator, ValidationError, SearchInputError

__all__ = [
    'BaseService',
    'BehaviorCacheManager',
    'BehaviorValidator',
    'ValidationError',
    'SearchInputError'
]
