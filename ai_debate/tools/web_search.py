"""Web search tool for evidence-backed debates.

Uses the Tavily API. Enabled when TAVILY_API_KEY is set; without it debates
run without tool calling.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

from ai_debate.config.settings import SearchConfig
from ai_debate.exceptions import ToolError

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "web_search"

# OpenAI-compatible function schema offered during the decide call
SEARCH_TOOL_DEFINITION: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": SEARCH_TOOL_NAME,
        "description": (
            "Search the web for factual evidence, statistics, news, or data to "
            "support your argument. Use specific, factual queries."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        "Search query - be specific and factual, e.g. "
                        "'AI job displacement statistics 2025'"
                    ),
                }
            },
            "required": ["query"],
        },
    },
}


@dataclass(frozen=True)
class SearchResult:
    """Evidence returned by one web search."""

    query: str
    results: str


def parse_search_query(arguments: str) -> str:
    """Extract the query string from a tool call's JSON arguments."""
    try:
        parsed = json.loads(arguments or "{}")
    except json.JSONDecodeError as e:
        raise ToolError(f"Malformed web_search arguments: {arguments!r}") from e

    query = parsed.get("query") if isinstance(parsed, dict) else None
    if not isinstance(query, str) or not query.strip():
        raise ToolError(f"web_search called without a query: {arguments!r}")
    return query.strip()


def _text_field(item: dict[str, Any], key: str) -> str:
    value = item.get(key)
    return value if isinstance(value, str) else ""


class WebSearchClient:
    """Tavily-backed web search."""

    def __init__(self, config: SearchConfig, http_client: httpx.AsyncClient | None = None):
        self.config = config
        self._http_client = http_client

    @property
    def api_key(self) -> str | None:
        return os.getenv(self.config.api_key_env) or None

    def is_enabled(self) -> bool:
        """Check if the search tool is available (API key is set)."""
        return self.api_key is not None

    async def search(self, query: str) -> SearchResult:
        """Run one search and format the results for model consumption."""
        api_key = self.api_key
        if not api_key:
            raise ToolError(f"{self.config.api_key_env} not set")

        logger.info("Web search: %s", query)

        payload = {
            "api_key": api_key,
            "query": query,
            "search_depth": self.config.search_depth,
            "include_answer": True,
            "max_results": self.config.max_results,
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    f"{self.config.base_url}/search", json=payload, timeout=self.config.timeout
                )
                response.raise_for_status()
                data = response.json()
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        f"{self.config.base_url}/search",
                        json=payload,
                        timeout=self.config.timeout,
                    )
                    response.raise_for_status()
                    data = response.json()
        except httpx.HTTPError as e:
            raise ToolError(f"Search request failed: {e}") from e
        except ValueError as e:
            raise ToolError(f"Search response parse failed: {e}") from e

        return SearchResult(query=query, results=self.format_results(data))

    def format_results(self, data: Any) -> str:
        """Render a Tavily response body; raises ToolError for unusable shapes."""
        if not isinstance(data, dict):
            raise ToolError(f"Unexpected search response: {type(data).__name__}")

        results = data.get("results") or []
        if not isinstance(results, list):
            raise ToolError(f"Unexpected search results: {type(results).__name__}")

        formatted: list[str] = []

        answer = data.get("answer")
        if isinstance(answer, str) and answer:
            formatted.append(f"Direct Answer: {answer}\n")

        for item in results:
            if not isinstance(item, dict):
                logger.debug("Skipping non-object search result: %r", item)
                continue
            title = _text_field(item, "title")
            content = _text_field(item, "content")[: self.config.snippet_chars]
            url = _text_field(item, "url")
            formatted.append(f"Source: {title}\n{content}\nURL: {url}\n")

        if not formatted:
            return "No relevant results found."
        return "\n".join(formatted)
