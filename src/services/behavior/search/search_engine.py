"""
Search engine for behaviour records.
Loads the searchable collections, ranks them, paginates and caches the response.
"""

from typing import Dict, List, Optional
from fastapi import BackgroundTasks

from ..base import BaseService, BehaviorCacheManager
from ..records.record_loader import RecordLoader
from ....core.config import settings
from .query_processor import QueryProcessor
from .ranking_engine import rank_records, is_searching
from .result_highlighter import ResultHighlighter


class SearchEngine(BaseService):
    """
    Main search engine for students, behaviour records and misdemeanors.
    Ranking itself is delegated to `rank_records`; this class adds I/O,
    pagination, highlighting and caching around it.
    """

    def __init__(self, cache_manager: BehaviorCacheManager,
                 record_loader: RecordLoader,
                 query_processor: QueryProcessor,
                 result_highlighter: ResultHighlighter):
        """
        Initialize the search engine.

        Args:
            cache_manager: Cache manager instance
            record_loader: Record loader instance
            query_processor: Query processor instance
            result_highlighter: Result highlighter instance
        """
        super().__init__(cache_manager)
        self.record_loader = record_loader
        self.query_processor = query_processor
        self.result_highlighter = result_highlighter

    def get_service_name(self) -> str:
        """Get the service name."""
        return "search_engine"

    async def search_records(self, query: str, filters: Optional[Dict] = None,
                             limit: Optional[int] = 20, offset: Optional[int] = 0,
                             highlight: bool = False,
                             background_tasks: Optional[BackgroundTasks] = None,
                             no_cache: bool = False) -> Dict:
        """
        Search students, behaviour records and misdemeanors.

        Args:
            query: Search query
            filters: Optional raw filters
            limit: Maximum number of results, None for all
            offset: Number of results to skip
            highlight: Whether to highlight matches
            background_tasks: Optional background tasks
            no_cache: Whether to bypass cache

        Returns:
            Dict: Search results with pagination info
        """
        try:
            self.validator.validate_search_query(query)
            limit, offset = self.validator.validate_pagination_params(limit, offset)
            processed_filters = self.query_processor.parse_filters(filters)

            if not is_searching(query):
                return self._build_response(query, processed_filters, [], limit, offset)

            query_hash = self.query_processor.generate_search_hash(
                query, processed_filters, limit, offset, highlight
            )
            cache_key = self.cache.search_key(query_hash)

            if not no_cache:
                cached_results = await self._cache_get(cache_key)
                if cached_results:
                    return cached_results

            collections = await self.record_loader.load_collections(processed_filters["types"])
            ranked_results = rank_records(
                query,
                processed_filters,
                students=collections["students"],
                behavior_records=collections["behavior_records"],
                misdemeanors=collections["misdemeanors"]
            )

            search_response = self._build_response(query, processed_filters, ranked_results,
                                                   limit, offset, highlight)

            if not no_cache:
                await self._cache_set(cache_key, search_response,
                                      settings.search_cache_seconds, background_tasks)

            return search_response

        except Exception as e:
            self._handle_service_error(e, f"Error searching records with query: {query}")

    def _build_response(self, query: str, filters: Dict, ranked_results: List[Dict],
                        limit: Optional[int], offset: int, highlight: bool = False) -> Dict:
        total_results = len(ranked_results)
        paginated_results = ranked_results[offset:offset + limit] if limit else ranked_results[offset:]

        if highlight:
            paginated_results = self.result_highlighter.highlight_search_results(
                paginated_results, query
            )

        page_size = limit or total_results or 1
        return {
            "query": query,
            "filters": filters,
            "results": paginated_results,
            "is_searching": is_searching(query),
            "result_count": total_results,
            "pagination": {
                "total": total_results,
                "limit": limit,
                "offset": offset,
                "has_next": offset + page_size < total_results,
                "has_previous": offset > 0,
                "next_offset": offset + page_size if offset + page_size < total_results else None,
                "previous_offset": max(offset - page_size, 0) if offset > 0 else None
            }
        }
