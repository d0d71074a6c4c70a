"""Abstract base class for document readers.

A document reader turns an attached file into plain text for chunking.
Failures are *recoverable*: the ingestion service skips the document and
keeps going with the remaining attachments.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: PyMuPDFDocumentReader (clarity/providers/document/)
class IDocumentReader(ABC):
    """Contract for extracting plain text from an attached document."""

    @abstractmethod
    async def extract_text(self, path: str) -> str:
        """Read the document at *path* and return its plain text.

        Returns
        -------
        str
            The extracted text.  May be empty when the document has no
            text layer (e.g. a scanned PDF without OCR).

        Raises
        ------
        clarity.utils.errors.DocumentReadError
            If the file is missing, unreadable, corrupt or of an
            unsupported format.
        """

    @abstractmethod
    def supports(self, path: str) -> bool:
        """Return ``True`` if this reader understands the file type of *path*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this reader."""
