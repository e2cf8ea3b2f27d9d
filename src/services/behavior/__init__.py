"""
Behaviour services module.
Search and ranking over students, behaviour records and misdemeanors,
plus the discipline rules applied when incidents and merits are logged.
"""

# Base services
from .base import BaseService, BehaviorCacheManager, BehaviorValidator, ValidationError, SearchInputError

# Record loading
from .records import RecordLoader

# Search services
from .search import SearchEngine, QueryProcessor, ResultHighlighter, rank_records

__all__ = [
    # Base services
    'BaseService',
    'BehaviorCacheManager',
    'BehaviorValidator',
    'ValidationError',
    'SearchInputError',

    # Record loading
    'RecordLoader',

    # Search services
    'SearchEngine',
    'QueryProcessor',
    'ResultHighlighter',
    'rank_records'
]
