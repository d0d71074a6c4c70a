"""Text chunking with overlapping character windows.

Splits extracted document text into pieces sized for the embedding model
(default 500 characters with 50 characters of overlap).

The splitter is *recursive*: it first tries to cut on the coarsest
separator present in the text (blank lines between paragraphs), greedily
packing pieces into windows.  Any single piece that is still longer than the
window is split again with the next finer separator (single newline, then
space, then individual characters).  Consecutive windows share up to
``overlap`` characters so a sentence that straddles a boundary is still
retrievable from at least one chunk.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Coarsest first.  "" means "split into single characters".
_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", " ", "")


class TextChunker:
    """Splits text into overlapping windows of at most ``chunk_size`` characters.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 500).
    overlap:
        Maximum characters carried over from the end of one chunk into the
        start of the next (default 50).  Must be smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 50) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be non-negative and smaller than chunk_size")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(self, text: str) -> list[str]:
        """Split *text* into overlapping chunks.

        Returns
        -------
        list[str]
            Non-empty, stripped chunks in document order.  Blank input
            returns an empty list.
        """
        if not text or not text.strip():
            return []

        chunks = self._split_recursive(text.strip(), _SEPARATORS)

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            avg_chars=sum(len(c) for c in chunks) // len(chunks) if chunks else 0,
        )
        return chunks

    # ------------------------------------------------------------------
    # Splitting
    # ------------------------------------------------------------------

    def _split_recursive(self, text: str, separators: tuple[str, ...]) -> list[str]:
        """Split on the coarsest separator present, recursing into oversized pieces."""
        separator = separators[-1]
        finer: tuple[str, ...] = ()
        for index, candidate in enumerate(separators):
            if candidate == "" or candidate in text:
                separator = candidate
                finer = separators[index + 1 :]
                break

        raw_pieces = text.split(separator) if separator else list(text)
        pieces = [piece.strip() for piece in raw_pieces if piece.strip()]

        chunks: list[str] = []
        pending: list[str] = []
        for piece in pieces:
            if len(piece) <= self._chunk_size:
                pending.append(piece)
                continue

            # Flush what fits before descending into the oversized piece.
            if pending:
                chunks.extend(self._merge(pending, separator))
                pending = []
            if finer:
                chunks.extend(self._split_recursive(piece, finer))
            else:
                chunks.append(piece)

        if pending:
            chunks.extend(self._merge(pending, separator))
        return chunks

    def _merge(self, pieces: list[str], separator: str) -> list[str]:
        """Greedily pack *pieces* into windows, carrying tail pieces as overlap.

        Window length is measured as the joined length, i.e. piece lengths
        plus one separator between neighbours.
        """
        sep_len = len(separator)
        chunks: list[str] = []
        window: list[str] = []
        total = 0

        for piece in pieces:
            added = len(piece) + (sep_len if window else 0)
            if window and total + added > self._chunk_size:
                chunks.append(separator.join(window).strip())

                # Drop pieces from the front until what is left fits the
                # overlap budget and leaves room for the incoming piece.
                while window and (
                    total > self._overlap
                    or total + len(piece) + (sep_len if window else 0) > self._chunk_size
                ):
                    total -= len(window[0]) + (sep_len if len(window) > 1 else 0)
                    window.pop(0)

                added = len(piece) + (sep_len if window else 0)

            window.append(piece)
            total += added

        if window:
            chunks.append(separator.join(window).strip())

        return [chunk for chunk in chunks if chunk]
