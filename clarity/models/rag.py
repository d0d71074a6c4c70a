"""RAG data models for the session-scoped document index.

Defines Pydantic v2 models for indexed chunks, search results, ingestion
summaries and index statistics.  All models use frozen config: a chunk is
created once during ingestion and never mutated afterwards.

Flow overview:

    1. INGESTION: an attached document's text is split into overlapping
       character windows (see clarity/services/ingestion/chunker.py).
    2. EMBEDDING: every window is turned into a dense vector by the
       embedding provider, in one batch per turn.
    3. STORAGE: window + vector + source path become a :class:`Chunk` in
       the session's in-memory VectorIndex.
    4. RETRIEVAL: the user's request is embedded and compared against every
       chunk by cosine similarity; the best matches become prompt context.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """An immutable unit of retrievable text with its embedding.

    Every chunk in one index shares the same embedding dimensionality.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier (UUID) for this chunk.")
    text: str = Field(description="The chunk's textual content.")
    source_path: str = Field(description="Identifier (path) of the originating document.")
    chunk_index: int = Field(
        default=0, ge=0, description="Position of this chunk within its source document."
    )
    embedding: tuple[float, ...] = Field(description="Dense embedding vector of ``text``.")

    @property
    def dimension(self) -> int:
        return len(self.embedding)


class ScoredChunk(BaseModel):
    """A chunk returned from an index search with its cosine similarity."""

    model_config = ConfigDict(frozen=True)

    chunk: Chunk
    score: float = Field(description="Cosine similarity between the query and the chunk.")


class IngestionResult(BaseModel):
    """Summary of one ingestion call.

    ``ingested`` lists documents newly added to the session; ``skipped``
    lists documents that were already ingested earlier; ``failed`` lists
    documents whose text could not be extracted.
    """

    model_config = ConfigDict(frozen=True)

    ingested: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    chunks_created: int = Field(default=0, ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0)


class IndexStats(BaseModel):
    """Snapshot of a session index's size and composition."""

    model_config = ConfigDict(frozen=True)

    total_chunks: int = Field(default=0, ge=0)
    total_documents: int = Field(default=0, ge=0)
    dimension: int | None = None
    chunks_by_document: dict[str, int] = Field(default_factory=dict)
