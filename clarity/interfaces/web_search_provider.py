"""Abstract base class for web-search service providers.

The coaching agent exposes web search to the model as the
``search_articles`` tool so advice can be grounded in published research.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


# frozen=True: a plain immutable value object, no validation needed.
@dataclass(frozen=True)
class SearchResult:
    """A single web-search result.

    Attributes
    ----------
    title:
        The page title as returned by the search engine.
    url:
        The canonical URL of the result page.
    snippet:
        An optional text excerpt from the result.
    """

    title: str
    url: str
    snippet: str | None = None


# Concrete implementation: DuckDuckGoSearchProvider (clarity/providers/search/)
class IWebSearchProvider(ABC):
    """Contract for web-search services used by the coaching agent."""

    @abstractmethod
    async def search(self, query: str, num_results: int = 3) -> list[SearchResult]:
        """Execute a web search and return the top results.

        Parameters
        ----------
        query:
            The search query string.
        num_results:
            Maximum number of results to return.

        Returns
        -------
        list[SearchResult]
            Zero or more results ordered by relevance.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this search provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
