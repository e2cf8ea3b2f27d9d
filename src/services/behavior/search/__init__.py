"""
Search module for behaviour services.
Handles ranking, query processing and result highlighting.
"""

from .ranking_engine import rank_records, is_searching, parse_timestamp
from .query_processor import QueryProcessor
from .result_highlighter import ResultHighlighter
from .search_engine import SearchEngine

__all__ = [
    'rank_records',
    'is_searching',
    'parse_timestamp',
    'SearchEngine',
    'QueryProcessor',
    'ResultHighlighter'
]
