"""Extract ``{title, url}`` citations from web-search tool output.

Tool turns carry the raw search payload as JSON.  Two shapes are accepted:
a bare array of result objects, or an object wrapping them under
``"results"``.  Entries without both a ``title`` and a ``url`` are dropped,
and tool output that is not JSON is ignored.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

import structlog

from clarity.models.messages import AssistantTurn, SystemTurn, ToolTurn, Turn, UserTurn
from clarity.models.pipeline import SourceReference

logger = structlog.get_logger(logger_name=__name__)


def extract_sources(messages: Iterable[Turn]) -> list[SourceReference]:
    """Return every citation found in the tool turns of *messages*, in order."""
    sources: list[SourceReference] = []
    for turn in messages:
        if isinstance(turn, ToolTurn):
            sources.extend(_sources_from_payload(turn.content))
        elif not isinstance(turn, (SystemTurn, UserTurn, AssistantTurn)):
            raise TypeError(f"Unsupported turn type: {type(turn).__name__}")
    return sources


def _sources_from_payload(content: str) -> list[SourceReference]:
    try:
        parsed: Any = json.loads(content)
    except ValueError:
        logger.debug("tool_output_not_json", preview=content[:80])
        return []

    results = parsed if isinstance(parsed, list) else None
    if isinstance(parsed, dict):
        results = parsed.get("results")
    if not isinstance(results, list):
        return []

    sources: list[SourceReference] = []
    for entry in results:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        url = entry.get("url")
        if title and url and isinstance(title, str) and isinstance(url, str):
            sources.append(SourceReference(title=title, url=url))
    return sources
