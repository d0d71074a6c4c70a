"""Retrieval policy -- how much document context a request should pull in.

The policy is asymmetric:

* **Document-centric** requests ("summarize this document", "what does the
  pdf say...") signal that the user wants the attachment.  They fetch more
  neighbours (k=8) and apply no similarity floor.
* **Ambient** requests (ordinary coaching questions asked while a document
  happens to be attached) fetch fewer neighbours (k=5) and drop anything
  scoring below 0.3, so loosely related snippets do not leak into the
  answer.

Classification is a case-insensitive *substring* match, so it over-matches
("update the documentation" counts as document-centric).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from clarity.interfaces.embedding_provider import IEmbeddingProvider
    from clarity.models.rag import ScoredChunk
    from clarity.services.session import RagSession

logger = structlog.get_logger(logger_name=__name__)

DOCUMENT_CENTRIC_PATTERN = re.compile(
    r"this document|the pdf|based on this|in the file|the file|the document"
    r"|uploaded|attached|from the pdf|in this pdf",
    re.IGNORECASE,
)

CONTEXT_SEPARATOR = "\n\n"


def is_document_centric(query: str) -> bool:
    """Return ``True`` if *query* refers to an attached document."""
    return DOCUMENT_CENTRIC_PATTERN.search(query) is not None


@dataclass(frozen=True)
class RetrievalPlan:
    """How many neighbours to fetch and which floor (if any) to apply."""

    document_centric: bool
    top_k: int
    min_similarity: float | None


class RetrievalPolicy:
    """Embeds a request, searches the session index and assembles context.

    Parameters
    ----------
    embedding_provider:
        Embeds the request text; must be the provider used at ingestion.
    focused_top_k:
        Neighbours fetched for document-centric requests.
    ambient_top_k:
        Neighbours fetched for all other requests.
    min_similarity:
        Floor applied to ambient requests only.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        focused_top_k: int = 8,
        ambient_top_k: int = 5,
        min_similarity: float = 0.3,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._focused_top_k = focused_top_k
        self._ambient_top_k = ambient_top_k
        self._min_similarity = min_similarity

    def plan(self, query: str) -> RetrievalPlan:
        if is_document_centric(query):
            return RetrievalPlan(document_centric=True, top_k=self._focused_top_k, min_similarity=None)
        return RetrievalPlan(
            document_centric=False,
            top_k=self._ambient_top_k,
            min_similarity=self._min_similarity,
        )

    async def retrieve(self, session: RagSession, query: str) -> str | None:
        """Return the context string for *query*, or ``None`` when nothing qualifies.

        Surviving chunk texts are joined in descending-score order with a
        blank line between them.  An empty index short-circuits without
        embedding the query.
        """
        if len(session.index) == 0:
            logger.debug("retrieval_skipped_empty_index", session_id=session.session_id)
            return None
        if not query.strip():
            logger.debug("retrieval_skipped_empty_query", session_id=session.session_id)
            return None

        plan = self.plan(query)
        query_vector = await self._embedding_provider.embed_single(query)
        results = session.index.search(query_vector, plan.top_k)
        kept = self._apply_floor(results, plan.min_similarity)

        logger.info(
            "retrieval_complete",
            session_id=session.session_id,
            document_centric=plan.document_centric,
            top_k=plan.top_k,
            candidates=len(results),
            kept=len(kept),
            best_score=round(results[0].score, 4) if results else None,
        )

        if not kept:
            return None
        return CONTEXT_SEPARATOR.join(result.chunk.text for result in kept)

    @staticmethod
    def _apply_floor(
        results: list[ScoredChunk], min_similarity: float | None
    ) -> list[ScoredChunk]:
        if min_similarity is None:
            return results
        return [result for result in results if result.score >= min_similarity]
