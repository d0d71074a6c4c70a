"""Web-search provider adapters."""

from clarity.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider

__all__ = ["DuckDuckGoSearchProvider"]
