"""DuckDuckGo web-search provider implementing IWebSearchProvider.

Backs the coaching agent's ``search_articles`` tool.  Uses the keyless
``duckduckgo_search`` library; the synchronous ``DDGS`` client runs in a
worker thread.  Rate limits and network failures are logged as warnings
and produce an empty result list, so the model simply sees no articles.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog
from duckduckgo_search import DDGS

from clarity.interfaces.web_search_provider import IWebSearchProvider, SearchResult

logger = structlog.get_logger(logger_name=__name__)


def restrict_to_domains(query: str, include_domains: Sequence[str]) -> str:
    """Append a ``(site:a OR site:b)`` clause limiting *query* to *include_domains*."""
    if not include_domains:
        return query
    sites = " OR ".join(f"site:{domain}" for domain in include_domains)
    return f"{query} ({sites})"


class DuckDuckGoSearchProvider(IWebSearchProvider):
    """DuckDuckGo web-search provider.

    Parameters
    ----------
    include_domains:
        Publishers the search is restricted to (research journals, HBR and
        similar).  Empty means the whole web.
    """

    def __init__(self, include_domains: Sequence[str] = ()) -> None:
        self._include_domains = tuple(include_domains)
        logger.info("duckduckgo_provider_initialized", domains=len(self._include_domains))

    async def search(self, query: str, num_results: int = 3) -> list[SearchResult]:
        """Execute a DuckDuckGo web search and return up to *num_results* results."""
        effective_query = restrict_to_domains(query, self._include_domains)

        try:
            raw_results = await asyncio.to_thread(
                self._sync_search, effective_query, num_results
            )
        except Exception as exc:  # noqa: BLE001 - DDG may rate-limit or fail
            logger.warning(
                "duckduckgo_search_failed",
                query=query,
                error=str(exc),
            )
            return []

        results: list[SearchResult] = []
        for item in raw_results or []:
            url = item.get("href", item.get("url", ""))
            if not url:
                continue
            results.append(
                SearchResult(
                    title=item.get("title", ""),
                    url=url,
                    snippet=item.get("body"),
                )
            )

        logger.debug(
            "duckduckgo_search_complete",
            query=query,
            result_count=len(results),
        )
        return results[:num_results]

    @staticmethod
    def _sync_search(query: str, max_results: int) -> list[dict]:
        """Run the synchronous DDGS search (called via to_thread)."""
        with DDGS() as ddgs:
            return list(ddgs.text(query, max_results=max_results))

    def get_provider_name(self) -> str:
        return "duckduckgo"

    def is_available(self) -> bool:
        """DuckDuckGo is always available (no API key required)."""
        return True
