"""
Query processor for behaviour search.
Handles filter parsing and hash generation.
"""

import hashlib
import json
from typing import Any, Dict, Optional

from ..base import BaseService, BehaviorCacheManager, ValidationError
from ..base.validators import RECORD_TYPES
from ....utils.cache import RecordEncoder
from .ranking_engine import parse_timestamp

# Filter names sent by the web client
FILTER_ALIASES = {
    "dateRange": "date_range",
    "minScore": "min_score",
    "maxScore": "max_score",
}


class QueryProcessor(BaseService):
    """
    Service for processing search requests.
    Turns raw filter payloads into the mapping the ranking engine reads
    and derives stable cache hashes.
    """

    def __init__(self, cache_manager: BehaviorCacheManager):
        """
        Initialize the query processor.

        Args:
            cache_manager: Cache manager instance
        """
        super().__init__(cache_manager)

    def get_service_name(self) -> str:
        """Get the service name."""
        return "query_processor"

    def parse_filters(self, filters: Optional[Dict]) -> Dict[str, Any]:
        """
        Parse and validate search filters.

        Missing filters mean every type with no restriction. Empty
        `grades` or `locations` lists are kept and exclude everything
        they apply to.

        Args:
            filters: Raw filters dictionary

        Returns:
            Dict: Filters keyed by the ranking engine's names

        Raises:
            ValidationError: If a filter value is malformed
        """
        try:
            raw = {FILTER_ALIASES.get(key, key): value for key, value in (filters or {}).items()}
            self.validator.validate_search_filters(raw)

            parsed = {
                "types": list(raw["types"]) if raw.get("types") is not None else list(RECORD_TYPES)
            }

            for key in ("grades", "locations"):
                if raw.get(key) is not None:
                    parsed[key] = list(raw[key])

            for key in ("min_score", "max_score"):
                if raw.get(key) is not None:
                    parsed[key] = raw[key]

            if (parsed.get("min_score") is not None and parsed.get("max_score") is not None
                    and parsed["min_score"] > parsed["max_score"]):
                raise ValidationError("min_score cannot be greater than max_score")

            date_range = raw.get("date_range")
            if date_range is not None:
                parsed["date_range"] = self._parse_date_range(date_range)

            return parsed

        except Exception as e:
            self._handle_service_error(e, "Error parsing filters")

    def _parse_date_range(self, date_range: Dict) -> Dict[str, Optional[str]]:
        bounds = {}
        for key in ("start", "end"):
            value = date_range.get(key)
            if value is None or value == "":
                bounds[key] = None
                continue
            parsed = parse_timestamp(value)
            if parsed is None:
                raise ValidationError(f"date_range.{key} is not a valid date: {value}")
            bounds[key] = parsed.isoformat()

        if bounds["start"] and bounds["end"] and parse_timestamp(bounds["start"]) > parse_timestamp(bounds["end"]):
            raise ValidationError("date_range.start cannot be after date_range.end")
        return bounds

    def generate_search_hash(self, query: str, filters: Optional[Dict] = None,
                             limit: Optional[int] = 20, offset: Optional[int] = 0,
                             highlight: bool = False) -> str:
        """
        Generate a consistent hash for search parameters.

        Args:
            query: Search query, used verbatim
            filters: Parsed filters
            limit: Maximum number of results
            offset: Number of results to skip
            highlight: Whether to highlight matches

        Returns:
            str: Hash string for cache key
        """
        filters_str = json.dumps(filters, sort_keys=True, cls=RecordEncoder) if filters else "none"
        params_str = f"{query}:{filters_str}:{limit}:{offset}:{highlight}"
        return hashlib.md5(params_str.encode()).hexdigest()
