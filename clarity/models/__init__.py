"""Pydantic data models for Clarity.

- **messages** -- conversation turns (closed sum type on ``role``) and
  tool declarations.
- **rag** -- indexed chunks, search results, ingestion summaries.
- **pipeline** -- per-turn state, step enum, and results returned to hosts.
"""

from clarity.models.messages import (
    AssistantTurn,
    SystemTurn,
    ToolCall,
    ToolSpec,
    ToolTurn,
    Turn,
    UserTurn,
    last_user_turn_index,
    turn_from_dict,
    turns_from_history,
)
from clarity.models.pipeline import (
    GenerationResult,
    PipelineStep,
    SourceReference,
    TurnResult,
    TurnState,
)
from clarity.models.rag import Chunk, IndexStats, IngestionResult, ScoredChunk

__all__ = [
    "AssistantTurn",
    "Chunk",
    "GenerationResult",
    "IndexStats",
    "IngestionResult",
    "PipelineStep",
    "ScoredChunk",
    "SourceReference",
    "SystemTurn",
    "ToolCall",
    "ToolSpec",
    "ToolTurn",
    "Turn",
    "TurnResult",
    "TurnState",
    "UserTurn",
    "last_user_turn_index",
    "turn_from_dict",
    "turns_from_history",
]
