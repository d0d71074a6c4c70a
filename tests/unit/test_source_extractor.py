"""Unit tests for citation extraction from search tool output."""

from __future__ import annotations

import json

import pytest

from clarity.models.messages import AssistantTurn, ToolTurn, UserTurn
from clarity.models.pipeline import SourceReference
from clarity.services.source_extractor import extract_sources


def _tool(payload: object) -> ToolTurn:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return ToolTurn(tool_call_id="call-1", name="search_articles", content=content)


class TestExtractSources:
    def test_bare_array(self) -> None:
        turn = _tool(
            [
                {"title": "Radical Candor", "url": "https://example.com/candor", "content": "..."},
                {"title": "Psychological Safety", "url": "https://example.com/safety"},
            ]
        )
        assert extract_sources([turn]) == [
            SourceReference(title="Radical Candor", url="https://example.com/candor"),
            SourceReference(title="Psychological Safety", url="https://example.com/safety"),
        ]

    def test_wrapped_results_object(self) -> None:
        turn = _tool({"query": "q", "results": [{"title": "T", "url": "https://u"}]})
        assert extract_sources([turn]) == [SourceReference(title="T", url="https://u")]

    def test_entries_missing_title_or_url_dropped(self) -> None:
        turn = _tool(
            [
                {"title": "No URL"},
                {"url": "https://no-title"},
                {"title": "", "url": "https://empty-title"},
                {"title": "Kept", "url": "https://kept"},
                "not-an-object",
            ]
        )
        assert extract_sources([turn]) == [SourceReference(title="Kept", url="https://kept")]

    @pytest.mark.parametrize("content", ["Unknown tool: foo", "", "{not json", "42", '"text"'])
    def test_unusable_tool_output_ignored(self, content: str) -> None:
        assert extract_sources([_tool(content)]) == []

    def test_object_without_results_ignored(self) -> None:
        assert extract_sources([_tool({"answer": "none"})]) == []

    def test_non_tool_turns_ignored(self) -> None:
        payload = json.dumps([{"title": "T", "url": "https://u"}])
        messages = [UserTurn(content=payload), AssistantTurn(content=payload)]
        assert extract_sources(messages) == []

    def test_multiple_tool_turns_in_order(self) -> None:
        messages = [
            _tool([{"title": "A", "url": "https://a"}]),
            AssistantTurn(content="thinking"),
            _tool({"results": [{"title": "B", "url": "https://b"}]}),
        ]
        assert [s.title for s in extract_sources(messages)] == ["A", "B"]

    def test_unknown_turn_type_rejected(self) -> None:
        with pytest.raises(TypeError):
            extract_sources([{"role": "tool", "content": "[]"}])  # type: ignore[list-item]
