"""Document ingestion for the session RAG index.

Pipeline: **read -> chunk -> embed -> store**.

1. **Read** (via IDocumentReader) -- extracts plain text from attachments.
2. **Chunk** (chunker.py / TextChunker) -- recursive character splitter
   producing ~500-character windows with 50 characters of overlap.
3. **Embed** (via IEmbeddingProvider) -- one batch per call.
4. **Store** (VectorIndex) -- in-memory, owned by the RagSession.
"""

from clarity.services.ingestion.chunker import TextChunker
from clarity.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "IngestionService",
    "TextChunker",
]
