"""Shared pytest fixtures for the Clarity test suite."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from clarity.interfaces.document_reader import IDocumentReader
from clarity.interfaces.embedding_provider import IEmbeddingProvider
from clarity.interfaces.llm_provider import IChatProvider
from clarity.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from clarity.models.messages import AssistantTurn, ToolSpec, Turn
from clarity.pipeline.orchestrator import TurnPipeline
from clarity.pipeline.progress_tracker import ProgressTracker
from clarity.services.coach_agent import CoachAgent
from clarity.services.ingestion import IngestionService, TextChunker
from clarity.services.retrieval_policy import RetrievalPolicy
from clarity.services.session import RagSession
from clarity.utils.errors import DocumentReadError

# ---------------------------------------------------------------------------
# Deterministic fakes
# ---------------------------------------------------------------------------

# One embedding axis per keyword, plus a small constant axis so that text
# without any keyword still embeds to a non-zero vector.
KEYWORDS: tuple[str, ...] = ("leadership", "feedback", "budget", "sleep", "hiring")


def keyword_vector(text: str) -> list[float]:
    lowered = text.lower()
    return [float(lowered.count(word)) for word in KEYWORDS] + [0.1]


class KeywordEmbeddingProvider(IEmbeddingProvider):
    """Embeds text as keyword counts; records every call."""

    def __init__(self) -> None:
        self.embed_calls: list[list[str]] = []
        self.single_calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.embed_calls.append(list(texts))
        return [keyword_vector(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.single_calls.append(text)
        return keyword_vector(text)

    def get_dimension(self) -> int:
        return len(KEYWORDS) + 1

    def get_provider_name(self) -> str:
        return "keyword"

    def is_available(self) -> bool:
        return True


class InMemoryDocumentReader(IDocumentReader):
    """Serves document text from a dict; unknown paths fail to read."""

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self.documents = dict(documents or {})
        self.reads: list[str] = []

    async def extract_text(self, path: str) -> str:
        self.reads.append(path)
        if path not in self.documents:
            raise DocumentReadError(message=f"Document not found: {path}", provider_name="memory")
        return self.documents[path]

    def supports(self, path: str) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "memory"


class ScriptedChatProvider(IChatProvider):
    """Returns queued replies in order, then a fixed answer; records each call."""

    def __init__(self, replies: Sequence[AssistantTurn] = (), default: str = "Here is my advice.") -> None:
        self.replies = list(replies)
        self.default = default
        self.calls: list[dict[str, Any]] = []

    async def chat(
        self,
        messages: Sequence[Turn],
        tools: Sequence[ToolSpec] | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> AssistantTurn:
        self.calls.append({"messages": list(messages), "tools": tools})
        if self.replies:
            return self.replies.pop(0)
        return AssistantTurn(content=self.default)

    def get_provider_name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def embedding_provider() -> KeywordEmbeddingProvider:
    return KeywordEmbeddingProvider()


@pytest.fixture
def document_reader() -> InMemoryDocumentReader:
    return InMemoryDocumentReader(
        {
            "leadership.pdf": (
                "Leadership starts with listening. Good leadership means asking for "
                "feedback before giving it.\n\n"
                "The quarterly budget review is handled by finance."
            ),
            "sleep.md": "Sleep matters. Executives who sleep seven hours make better calls.",
            "blank.pdf": "   ",
        }
    )


@pytest.fixture
def chat_provider() -> ScriptedChatProvider:
    return ScriptedChatProvider()


@pytest.fixture
def mock_search_provider() -> IWebSearchProvider:
    """Mock IWebSearchProvider returning two research articles."""
    mock = MagicMock(spec=IWebSearchProvider)
    mock.get_provider_name.return_value = "mock_search"
    mock.is_available.return_value = True
    mock.search = AsyncMock(
        return_value=[
            SearchResult(
                title="What Great Managers Do",
                url="https://hbr.org/2005/03/what-great-managers-do",
                snippet="Great managers discover what is unique about each person.",
            ),
            SearchResult(
                title="The Feedback Fallacy",
                url="https://hbr.org/2019/03/the-feedback-fallacy",
                snippet=None,
            ),
        ]
    )
    return mock


@pytest.fixture
def rag_session() -> RagSession:
    return RagSession(session_id="session-1")


@pytest.fixture
def progress_tracker() -> ProgressTracker:
    return ProgressTracker()


@pytest.fixture
def make_pipeline(
    document_reader: InMemoryDocumentReader,
    embedding_provider: KeywordEmbeddingProvider,
    chat_provider: ScriptedChatProvider,
    progress_tracker: ProgressTracker,
):
    """Factory building a TurnPipeline from the fakes above."""

    def _make(
        web_search: IWebSearchProvider | None = None,
        chunk_size: int = 120,
        overlap: int = 20,
    ) -> TurnPipeline:
        ingestion = IngestionService(
            reader=document_reader,
            chunker=TextChunker(chunk_size=chunk_size, overlap=overlap),
            embedding_provider=embedding_provider,
        )
        retrieval = RetrievalPolicy(embedding_provider=embedding_provider)
        agent = CoachAgent(llm=chat_provider, web_search=web_search)
        return TurnPipeline(
            ingestion_service=ingestion,
            retrieval_policy=retrieval,
            coach_agent=agent,
            progress_tracker=progress_tracker,
        )

    return _make
