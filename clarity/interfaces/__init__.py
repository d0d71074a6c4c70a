"""Provider interfaces (abstract base classes) for external collaborators."""

from clarity.interfaces.document_reader import IDocumentReader
from clarity.interfaces.embedding_provider import IEmbeddingProvider
from clarity.interfaces.llm_provider import IChatProvider
from clarity.interfaces.web_search_provider import IWebSearchProvider, SearchResult

__all__ = [
    "IChatProvider",
    "IDocumentReader",
    "IEmbeddingProvider",
    "IWebSearchProvider",
    "SearchResult",
]
