"""
Validators for behaviour service inputs.
Provides validation for search requests, ranking inputs and pagination.
"""

import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

RECORD_TYPES = ("student", "incident", "merit", "misdemeanor")


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


class SearchInputError(ValidationError):
    """Raised when the ranking engine receives inputs of the wrong shape."""
    pass


class BehaviorValidator:
    """
    Validator class for behaviour service inputs.
    """

    def __init__(self):
        self.logger = logger

    def validate_pagination_params(self, limit: Optional[int], offset: Optional[int]) -> tuple:
        """
        Validate pagination parameters.

        Args:
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            tuple: (validated_limit, validated_offset)

        Raises:
            ValidationError: If pagination parameters are invalid
        """
        if limit is not None:
            if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
                raise ValidationError("Limit must be a positive integer")
            if limit > 1000:
                raise ValidationError("Limit cannot exceed 1000")

        if offset is not None:
            if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
                raise ValidationError("Offset must be a non-negative integer")
            if offset > 100000:
                raise ValidationError("Offset cannot exceed 100000")

        return (limit, offset or 0)

    # Ranking engine input shape

    def validate_search_query(self, query: Any) -> str:
        if not isinstance(query, str):
            raise SearchInputError(f"Search query must be a string, got: {type(query).__name__}")
        return query

    def validate_record_collection(self, records: Any, name: str) -> Sequence[Mapping]:
        """
        Validate that a collection is a sequence of mappings.

        Raises:
            SearchInputError: If the collection or any item has the wrong shape
        """
        if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
            raise SearchInputError(
                f"{name} must be a sequence of mappings, got: {type(records).__name__}"
            )
        for index, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise SearchInputError(
                    f"{name}[{index}] must be a mapping, got: {type(record).__name__}"
                )
        return records

    def validate_search_filters(self, filters: Any) -> Mapping:
        """
        Validate the shape of a search filter mapping.

        Raises:
            SearchInputError: If filters or any filter value has the wrong shape
        """
        if not isinstance(filters, Mapping):
            raise SearchInputError(f"Filters must be a mapping, got: {type(filters).__name__}")

        if filters.get("types") is not None:
            self._validate_string_collection(filters["types"], "types")
        for key in ("grades", "locations"):
            if filters.get(key) is not None:
                self._validate_string_collection(filters[key], key)

        for key in ("min_score", "max_score"):
            value = filters.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise SearchInputError(f"Filter '{key}' must be a number, got: {type(value).__name__}")

        date_range = filters.get("date_range")
        if date_range is not None:
            if not isinstance(date_range, Mapping):
                raise SearchInputError(
                    f"Filter 'date_range' must be a mapping, got: {type(date_range).__name__}"
                )
            for key in ("start", "end"):
                bound = date_range.get(key)
                if bound is not None and not isinstance(bound, (str, date, datetime)):
                    raise SearchInputError(
                        f"date_range.{key} must be a date, datetime or ISO string, got: {type(bound).__name__}"
                    )

        return filters

    def _validate_string_collection(self, values: Any, key: str):
        if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, (Sequence, set, frozenset)):
            raise SearchInputError(f"Filter '{key}' must be a list of strings, got: {type(values).__name__}")
        for value in values:
            if not isinstance(value, str):
                raise SearchInputError(f"Filter '{key}' must only contain strings, got: {value!r}")
