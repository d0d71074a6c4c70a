"""Turn pipeline state models.

Defines the step enum that drives a single conversational turn, the frozen
per-turn :class:`TurnState`, and the value objects handed back to the
hosting application.  State transitions produce new TurnState instances via
``model_copy(update={...})``.

``original_request`` is captured once when the turn starts and is never
updated: retrieval always evaluates the user's literal words, not the
augmented prompt that replaces them in ``messages``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from clarity.models.messages import Turn, last_user_turn_index
from clarity.models.rag import IngestionResult

# Fire-and-forget progress sink; the return value is ignored.
StatusCallback = Callable[[str], None]


class PipelineStep(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Steps of the per-turn RAG pipeline.

        CHECK_ATTACHMENTS -> CHUNK_AND_INDEX | RETRIEVE_CONTEXT | GENERATE_RESPONSE
        CHUNK_AND_INDEX   -> RETRIEVE_CONTEXT
        RETRIEVE_CONTEXT  -> AUGMENT_PROMPT | GENERATE_RESPONSE
        AUGMENT_PROMPT    -> GENERATE_RESPONSE
        GENERATE_RESPONSE -> END

    See clarity/pipeline/transitions.py for the transition rules.
    """

    CHECK_ATTACHMENTS = "CHECK_ATTACHMENTS"
    CHUNK_AND_INDEX = "CHUNK_AND_INDEX"
    RETRIEVE_CONTEXT = "RETRIEVE_CONTEXT"
    AUGMENT_PROMPT = "AUGMENT_PROMPT"
    GENERATE_RESPONSE = "GENERATE_RESPONSE"
    END = "END"


class SourceReference(BaseModel):
    """A ``{title, url}`` citation extracted from web-search tool output."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class GenerationResult(BaseModel):
    """Output of the generation step: final text, sources and new turns."""

    model_config = ConfigDict(frozen=True)

    content: str
    sources: list[SourceReference] = Field(default_factory=list)
    # Assistant and tool turns produced while generating (excludes the input).
    transcript: list[Turn] = Field(default_factory=list)


class TurnState(BaseModel):
    """Working state threaded through the pipeline for one turn.

    Immutable -- use ``model_copy(update={...})`` to produce new states.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    messages: list[Turn] = Field(default_factory=list)
    attached_documents: list[str] = Field(default_factory=list)
    original_request: str = ""
    retrieved_context: str | None = None
    current_step: PipelineStep = PipelineStep.CHECK_ATTACHMENTS
    visited_steps: list[PipelineStep] = Field(default_factory=list)
    ingestion: IngestionResult | None = None
    response: str | None = None
    sources: list[SourceReference] = Field(default_factory=list)
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    completed_at: datetime | None = None

    @classmethod
    def start(
        cls,
        session_id: str,
        messages: Sequence[Turn],
        attached_documents: Iterable[str] = (),
    ) -> TurnState:
        """Build the entry state, capturing the latest user request verbatim.

        Attachments are de-duplicated, keeping first-seen order.
        """
        index = last_user_turn_index(messages)
        original_request = ""
        if index is not None:
            original_request = messages[index].content
        return cls(
            session_id=session_id,
            messages=list(messages),
            attached_documents=list(dict.fromkeys(attached_documents)),
            original_request=original_request,
        )


class TurnResult(BaseModel):
    """What the hosting application receives for a completed turn."""

    model_config = ConfigDict(frozen=True)

    content: str
    sources: list[SourceReference] = Field(default_factory=list)
    visited_steps: list[PipelineStep] = Field(default_factory=list)
    retrieved_context: str | None = None

    @property
    def used_document_context(self) -> bool:
        return PipelineStep.AUGMENT_PROMPT in self.visited_steps
