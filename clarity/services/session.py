"""RAG session -- the vector index and ingested-document set of one conversation.

A session is owned by the hosting application (the HTTP app keeps one per
session id, the CLI keeps one for the REPL) and passed into every pipeline
call.  Nothing here is global, so independent sessions never share chunks.

No locking: the pipeline assumes at most one turn in flight per session.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from clarity.models.rag import IndexStats
from clarity.services.vector_index import VectorIndex


@dataclass
class RagSession:
    """Mutable per-conversation RAG state.

    ``ingested`` holds a document identifier only once every chunk of that
    document is present in ``index``.
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    index: VectorIndex = field(default_factory=VectorIndex)
    ingested: set[str] = field(default_factory=set)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )

    def is_ingested(self, document: str) -> bool:
        return document in self.ingested

    def pending(self, documents: Iterable[str]) -> list[str]:
        """Return *documents* not yet ingested, de-duplicated in order."""
        return [doc for doc in dict.fromkeys(documents) if doc not in self.ingested]

    def mark_ingested(self, documents: Iterable[str]) -> None:
        self.ingested.update(documents)

    def stats(self) -> IndexStats:
        return self.index.stats()
