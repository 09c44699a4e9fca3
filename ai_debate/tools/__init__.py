"""External tools available to debaters."""

from .web_search import (
    SEARCH_TOOL_DEFINITION,
    SEARCH_TOOL_NAME,
    SearchResult,
    WebSearchClient,
    parse_search_query,
)

__all__ = [
    "SEARCH_TOOL_DEFINITION",
    "SEARCH_TOOL_NAME",
    "SearchResult",
    "WebSearchClient",
    "parse_search_query",
]
