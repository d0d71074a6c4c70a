"""Unit tests for DuckDuckGoSearchProvider (network calls patched out)."""

from __future__ import annotations

import pytest

from clarity.interfaces.web_search_provider import SearchResult
from clarity.providers.search.duckduckgo_provider import (
    DuckDuckGoSearchProvider,
    restrict_to_domains,
)


class TestRestrictToDomains:
    def test_no_domains_leaves_query(self) -> None:
        assert restrict_to_domains("delegation", []) == "delegation"

    def test_domains_joined_with_or(self) -> None:
        assert restrict_to_domains("delegation", ["hbr.org", "apa.org"]) == (
            "delegation (site:hbr.org OR site:apa.org)"
        )


class TestDuckDuckGoSearchProvider:
    @pytest.mark.asyncio
    async def test_maps_results(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: dict = {}

        def fake_search(query: str, max_results: int) -> list[dict]:
            seen["query"] = query
            seen["max_results"] = max_results
            return [
                {"title": "Delegation 101", "href": "https://hbr.org/delegation", "body": "Snippet"},
                {"title": "No link", "body": "dropped"},
            ]

        monkeypatch.setattr(DuckDuckGoSearchProvider, "_sync_search", staticmethod(fake_search))
        provider = DuckDuckGoSearchProvider(include_domains=["hbr.org"])

        results = await provider.search("delegation", num_results=3)

        assert results == [
            SearchResult(title="Delegation 101", url="https://hbr.org/delegation", snippet="Snippet")
        ]
        assert seen == {"query": "delegation (site:hbr.org)", "max_results": 3}

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def failing(query: str, max_results: int) -> list[dict]:
            raise RuntimeError("202 Ratelimit")

        monkeypatch.setattr(DuckDuckGoSearchProvider, "_sync_search", staticmethod(failing))

        assert await DuckDuckGoSearchProvider().search("anything") == []

    def test_identity(self) -> None:
        provider = DuckDuckGoSearchProvider()
        assert provider.get_provider_name() == "duckduckgo"
        assert provider.is_available() is True
