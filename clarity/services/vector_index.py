"""In-memory vector index of embedded chunks.

Chunks are appended in batches and kept alongside a numpy matrix of their
embeddings (one row per chunk, same order) so a search is a single
matrix-vector product.  There is no eviction and no persistence: the index
lives exactly as long as the :class:`~clarity.services.session.RagSession`
that owns it.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import numpy as np
import structlog

from clarity.models.rag import Chunk, IndexStats, ScoredChunk
from clarity.services.similarity import similarities

logger = structlog.get_logger(logger_name=__name__)


class VectorIndex:
    """Append-only store of :class:`Chunk` objects with k-NN search.

    Every chunk must share the same embedding dimensionality; the first
    insert fixes it.  No deduplication happens here -- the ingestion service
    is responsible for not re-submitting documents.
    """

    def __init__(self) -> None:
        self._chunks: list[Chunk] = []
        self._matrix: np.ndarray | None = None

    def __len__(self) -> int:
        return len(self._chunks)

    @property
    def dimension(self) -> int | None:
        if self._matrix is None:
            return None
        return int(self._matrix.shape[1])

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return tuple(self._chunks)

    def insert(self, chunks: Sequence[Chunk]) -> int:
        """Append *chunks* to the index and return how many were added.

        Raises
        ------
        ValueError
            If the chunks' embeddings are empty or do not all match the
            index dimensionality.
        """
        if not chunks:
            return 0

        dimensions = {chunk.dimension for chunk in chunks}
        expected = self.dimension
        if len(dimensions) != 1 or 0 in dimensions:
            raise ValueError(f"Chunks have inconsistent embedding sizes: {sorted(dimensions)}")
        if expected is not None and dimensions != {expected}:
            raise ValueError(
                f"Embedding size {dimensions.pop()} does not match index dimension {expected}"
            )

        rows = np.array([chunk.embedding for chunk in chunks], dtype=np.float64)
        self._matrix = rows if self._matrix is None else np.vstack([self._matrix, rows])
        self._chunks.extend(chunks)

        logger.debug("index_insert", added=len(chunks), total=len(self._chunks))
        return len(chunks)

    def search(self, query_vector: Sequence[float], k: int) -> list[ScoredChunk]:
        """Return the *k* chunks most similar to *query_vector*, best first.

        Ties keep insertion order.  Returns fewer than *k* results when the
        index is smaller, and an empty list when it is empty.
        """
        if k <= 0 or self._matrix is None:
            return []

        scores = similarities(query_vector, self._matrix)
        # Stable sort on the negated scores: descending, ties in insertion order.
        order = np.argsort(-scores, kind="stable")[:k]
        return [
            ScoredChunk(chunk=self._chunks[int(i)], score=float(scores[int(i)]))
            for i in order
        ]

    def source_paths(self) -> set[str]:
        """Return the distinct source documents represented in the index."""
        return {chunk.source_path for chunk in self._chunks}

    def stats(self) -> IndexStats:
        counts = Counter(chunk.source_path for chunk in self._chunks)
        return IndexStats(
            total_chunks=len(self._chunks),
            total_documents=len(counts),
            dimension=self.dimension,
            chunks_by_document=dict(counts),
        )
