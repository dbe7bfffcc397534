"""Web search adapter using DuckDuckGo."""

from dataclasses import dataclass
from typing import Any

import structlog
from langchain_community.tools import DuckDuckGoSearchResults

from ragchat.core.config import settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class WebSearchResult:
    """Single web hit: page URL plus snippet text."""

    url: str
    content: str


async def search_web(query: str, num_results: int | None = None) -> list[WebSearchResult]:
    """Search the web for up-to-date information.

    Args:
        query: The search query string.
        num_results: Maximum number of hits, defaults to the configured value.

    Returns:
        Hits with a non-empty link. Provider failures are logged and yield
        an empty list.
    """
    search = DuckDuckGoSearchResults(
        output_format="list",
        num_results=num_results or settings.retrieval.web_search_results,
    )
    try:
        raw: Any = await search.ainvoke(query)
    except Exception:
        logger.exception("Web search failed", query=query)
        return []

    if not isinstance(raw, list):
        logger.warning("Unexpected web search payload", payload_type=type(raw).__name__)
        return []

    results: list[WebSearchResult] = []
    for item in raw:
        link = str(item.get("link") or "").strip()
        if not link:
            continue
        snippet = str(item.get("snippet") or item.get("title") or "").strip()
        results.append(WebSearchResult(url=link, content=snippet))
    logger.info("Web search completed", query=query, results=len(results))
    return results
