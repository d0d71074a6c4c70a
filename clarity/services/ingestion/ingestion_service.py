"""Orchestrator for attaching documents to a RAG session.

Pipeline stages: **read -> chunk -> embed -> store**.

:class:`IngestionService` coordinates three collaborators (document reader,
chunker, embedding provider) and writes the result into the session's
:class:`~clarity.services.vector_index.VectorIndex`:

    1. IDocumentReader -- extracts plain text from each new attachment
    2. TextChunker -- splits text into ~500-character overlapping windows
    3. IEmbeddingProvider -- embeds every window of every new document in
       one batch
    4. VectorIndex -- stores the embedded chunks for similarity search

Ingestion is idempotent per session: documents already recorded in
``session.ingested`` are never read or embedded again.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from clarity.models.rag import Chunk, IngestionResult
from clarity.services.ingestion.chunker import TextChunker
from clarity.utils.errors import DocumentReadError, RAGError

if TYPE_CHECKING:
    from clarity.interfaces.document_reader import IDocumentReader
    from clarity.interfaces.embedding_provider import IEmbeddingProvider
    from clarity.models.pipeline import StatusCallback
    from clarity.services.session import RagSession

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Reads, chunks, embeds and indexes newly attached documents.

    Parameters
    ----------
    reader:
        Extracts plain text from attachment paths.
    chunker:
        Splits document text into overlapping windows.
    embedding_provider:
        Generates embedding vectors for chunk text.
    """

    def __init__(
        self,
        reader: IDocumentReader,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
    ) -> None:
        self._reader = reader
        self._chunker = chunker
        self._embedding_provider = embedding_provider

    async def ingest(
        self,
        session: RagSession,
        document_paths: Sequence[str],
        notify: StatusCallback | None = None,
    ) -> IngestionResult:
        """Ingest every document in *document_paths* not yet in *session*.

        A document whose text cannot be extracted is skipped with a warning
        and left un-ingested so a later turn may retry it.  Documents that
        yield no text are recorded as ingested (they have no chunks to
        add).  If no text is extracted at all, the index is left untouched.

        Returns
        -------
        IngestionResult
            Which documents were ingested, skipped and failed, plus the
            number of chunks added.

        Raises
        ------
        RAGError
            If embedding fails.  Nothing from this call is marked ingested.
        """
        start = time.monotonic()
        requested = list(dict.fromkeys(document_paths))
        pending = session.pending(requested)
        skipped = [path for path in requested if path not in pending]

        if not pending:
            logger.debug("ingestion_nothing_new", skipped=len(skipped))
            return IngestionResult(skipped=skipped)

        # Step 1-2: read and chunk each new document.
        drafts: list[tuple[str, int, str]] = []  # (source_path, chunk_index, text)
        processed: list[str] = []
        failed: list[str] = []
        for path in pending:
            try:
                text = await self._reader.extract_text(path)
            except DocumentReadError as exc:
                logger.warning("document_read_failed", path=path, error=str(exc))
                failed.append(path)
                continue

            pieces = self._chunker.split(text)
            drafts.extend((path, index, piece) for index, piece in enumerate(pieces))
            processed.append(path)
            logger.info("document_chunked", path=path, chars=len(text), chunks=len(pieces))

        if not drafts:
            # Nothing to embed; empty-text documents are complete as they are.
            session.mark_ingested(processed)
            return IngestionResult(
                ingested=processed,
                skipped=skipped,
                failed=failed,
                ingestion_time=round(time.monotonic() - start, 3),
            )

        if notify is not None:
            notify(f"Indexing {len(drafts)} chunks...")

        # Step 3: one embedding batch for all new chunks.
        vectors = await self._embedding_provider.embed([text for _, _, text in drafts])
        if len(vectors) != len(drafts):
            raise RAGError(
                message=f"Expected {len(drafts)} embeddings, received {len(vectors)}",
                provider_name=self._embedding_provider.get_provider_name(),
            )

        # Step 4: store, then record the documents as ingested.
        chunks = [
            Chunk(
                chunk_id=str(uuid.uuid4()),
                text=text,
                source_path=path,
                chunk_index=index,
                embedding=tuple(vector),
            )
            for (path, index, text), vector in zip(drafts, vectors)
        ]
        try:
            session.index.insert(chunks)
        except ValueError as exc:
            raise RAGError(
                message=f"Could not index embeddings: {exc}",
                provider_name=self._embedding_provider.get_provider_name(),
            ) from exc
        session.mark_ingested(processed)

        elapsed = round(time.monotonic() - start, 3)
        logger.info(
            "ingestion_complete",
            session_id=session.session_id,
            documents=len(processed),
            failed=len(failed),
            chunks=len(chunks),
            index_size=len(session.index),
            elapsed_s=elapsed,
        )
        return IngestionResult(
            ingested=processed,
            skipped=skipped,
            failed=failed,
            chunks_created=len(chunks),
            ingestion_time=elapsed,
        )
