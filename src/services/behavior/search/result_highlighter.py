"""
Result highlighter for behaviour search.
Handles highlighting of the search term in ranked results.
"""

import re
from typing import Dict, List

from ..base import BaseService, BehaviorCacheManager

HIGHLIGHTED_FIELDS = ("title", "subtitle", "description")


class ResultHighlighter(BaseService):
    """
    Service for highlighting search terms in results.
    The whole query is highlighted, mirroring how it was matched.
    """

    def __init__(self, cache_manager: BehaviorCacheManager):
        """
        Initialize the result highlighter.

        Args:
            cache_manager: Cache manager instance
        """
        super().__init__(cache_manager)
        self.default_highlight_tag = "**"

    def get_service_name(self) -> str:
        """Get the service name."""
        return "result_highlighter"

    def highlight_text(self, text: str, query: str, highlight_tag: str = None) -> str:
        """
        Wrap every case-insensitive occurrence of the query in the highlight tag.

        Args:
            text: Text to highlight
            query: Search query
            highlight_tag: Tag to use for highlighting (default: **)

        Returns:
            str: Text with highlighted terms
        """
        if not query or not query.strip() or not text:
            return text

        highlight_tag = highlight_tag or self.default_highlight_tag
        pattern = re.compile(re.escape(query), re.IGNORECASE)
        return pattern.sub(lambda match: f"{highlight_tag}{match.group(0)}{highlight_tag}", text)

    def highlight_search_results(self, results: List[Dict], query: str) -> List[Dict]:
        """
        Highlight the query in the display fields of each result.

        Metadata is left untouched and the input results are not modified.

        Args:
            results: Ranked search results
            query: Search query

        Returns:
            List[Dict]: Copies of the results with highlighted fields
        """
        highlighted_results = []
        for result in results:
            highlighted = dict(result)
            for field in HIGHLIGHTED_FIELDS:
                value = highlighted.get(field)
                if isinstance(value, str):
                    highlighted[field] = self.highlight_text(value, query)
            highlighted_results.append(highlighted)
        return highlighted_results
