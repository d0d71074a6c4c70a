"""Unit tests for document-centric classification and RetrievalPolicy."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from clarity.interfaces.embedding_provider import IEmbeddingProvider
from clarity.models.rag import Chunk
from clarity.services.retrieval_policy import RetrievalPolicy, is_document_centric
from clarity.services.session import RagSession

_QUERY_VECTOR = [1.0, 0.0, 0.0]


def _chunk(name: str, embedding: list[float]) -> Chunk:
    return Chunk(chunk_id=name, text=name, source_path="doc.pdf", embedding=tuple(embedding))


@pytest.fixture()
def query_embedder() -> IEmbeddingProvider:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.embed_single = AsyncMock(return_value=_QUERY_VECTOR)
    mock.get_provider_name.return_value = "mock"
    return mock


@pytest.fixture()
def populated_session() -> RagSession:
    session = RagSession(session_id="retrieval")
    session.index.insert(
        [
            _chunk("exact", [1.0, 0.0, 0.0]),          # 1.0
            _chunk("close", [1.0, 1.0, 0.0]),          # ~0.707
            _chunk("weak", [0.2, 1.0, 0.0]),           # ~0.196
            _chunk("orthogonal-a", [0.0, 1.0, 0.0]),   # 0.0
            _chunk("orthogonal-b", [0.0, 0.0, 1.0]),   # 0.0
        ]
        + [_chunk(f"opposite-{i}", [-1.0, 0.0, 0.0]) for i in range(5)]  # -1.0
    )
    return session


# ======================================================================
# is_document_centric
# ======================================================================


class TestDocumentCentric:
    @pytest.mark.parametrize(
        "query",
        [
            "Summarize this document",
            "What does THE PDF say about delegation?",
            "Based on this, what should I do?",
            "Is there anything in the file about budgets?",
            "Give me the key points of the document",
            "Review what I uploaded",
            "Look at the attached plan",
            "Pull quotes from the PDF",
            "What's in this pdf?",
        ],
    )
    def test_document_references_match(self, query: str) -> None:
        assert is_document_centric(query) is True

    @pytest.mark.parametrize(
        "query",
        [
            "How do I give tough feedback to my VP?",
            "Help me prepare for a board meeting",
            "",
        ],
    )
    def test_ordinary_questions_do_not_match(self, query: str) -> None:
        assert is_document_centric(query) is False

    def test_substring_match_over_matches(self) -> None:
        # "the document" is a substring of "the documentation".
        assert is_document_centric("Help me update the documentation process") is True


# ======================================================================
# RetrievalPolicy
# ======================================================================


class TestRetrievalPolicy:
    def test_plan_for_document_centric_query(self, query_embedder) -> None:
        plan = RetrievalPolicy(query_embedder).plan("summarize this document")
        assert plan.document_centric is True
        assert plan.top_k == 8
        assert plan.min_similarity is None

    def test_plan_for_ambient_query(self, query_embedder) -> None:
        plan = RetrievalPolicy(query_embedder).plan("how do I delegate?")
        assert plan.document_centric is False
        assert plan.top_k == 5
        assert plan.min_similarity == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_empty_index_returns_none_without_embedding(self, query_embedder) -> None:
        policy = RetrievalPolicy(query_embedder)
        context = await policy.retrieve(RagSession(), "summarize this document")
        assert context is None
        query_embedder.embed_single.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_query_returns_none(self, query_embedder, populated_session) -> None:
        policy = RetrievalPolicy(query_embedder)
        assert await policy.retrieve(populated_session, "   ") is None
        query_embedder.embed_single.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ambient_query_applies_floor(self, query_embedder, populated_session) -> None:
        policy = RetrievalPolicy(query_embedder)
        context = await policy.retrieve(populated_session, "how do I delegate?")
        assert context == "exact\n\nclose"
        query_embedder.embed_single.assert_awaited_once_with("how do I delegate?")

    @pytest.mark.asyncio
    async def test_document_centric_query_has_no_floor(
        self, query_embedder, populated_session
    ) -> None:
        policy = RetrievalPolicy(query_embedder)
        context = await policy.retrieve(populated_session, "summarize this document")
        assert context is not None
        parts = context.split("\n\n")
        assert len(parts) == 8
        assert parts[:3] == ["exact", "close", "weak"]
        assert parts[-1].startswith("opposite-")

    @pytest.mark.asyncio
    async def test_nothing_above_floor_returns_none(self, query_embedder) -> None:
        session = RagSession()
        session.index.insert([_chunk("unrelated", [0.0, 1.0, 0.0])])
        context = await RetrievalPolicy(query_embedder).retrieve(session, "how do I delegate?")
        assert context is None

    @pytest.mark.asyncio
    async def test_floor_is_inclusive(self, query_embedder) -> None:
        session = RagSession()
        session.index.insert([_chunk("same-direction", [2.0, 0.0, 0.0])])
        policy = RetrievalPolicy(query_embedder, min_similarity=1.0)
        assert await policy.retrieve(session, "how do I delegate?") == "same-direction"

    @pytest.mark.asyncio
    async def test_custom_top_k(self, query_embedder, populated_session) -> None:
        policy = RetrievalPolicy(query_embedder, focused_top_k=2)
        context = await policy.retrieve(populated_session, "what's in this pdf?")
        assert context == "exact\n\nclose"
