"""Document reader for PDF and plain-text attachments.

PDFs are read with PyMuPDF (fitz), page by page, and the page texts joined
with a blank line.  ``.txt`` and ``.md`` files are read as UTF-8.  Reading
runs in a worker thread so large files do not block the event loop.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from clarity.interfaces.document_reader import IDocumentReader
from clarity.utils.errors import DocumentReadError

logger = structlog.get_logger(logger_name=__name__)

_PDF_SUFFIXES = frozenset({".pdf"})
_TEXT_SUFFIXES = frozenset({".txt", ".md", ".markdown"})


class PyMuPDFDocumentReader(IDocumentReader):
    """Extracts plain text from PDF, text and Markdown files."""

    async def extract_text(self, path: str) -> str:
        if not self.supports(path):
            raise DocumentReadError(
                message=f"Unsupported document type: {path}",
                provider_name=self.get_provider_name(),
            )
        if not Path(path).is_file():
            raise DocumentReadError(
                message=f"Document not found: {path}",
                provider_name=self.get_provider_name(),
            )

        if Path(path).suffix.lower() in _PDF_SUFFIXES:
            text = await asyncio.to_thread(self._read_pdf, path)
        else:
            text = await asyncio.to_thread(self._read_text, path)

        if not text.strip():
            logger.warning("document_no_text_extracted", path=path)
        else:
            logger.debug("document_text_extracted", path=path, characters=len(text))
        return text

    def supports(self, path: str) -> bool:
        suffix = Path(path).suffix.lower()
        return suffix in _PDF_SUFFIXES or suffix in _TEXT_SUFFIXES

    def get_provider_name(self) -> str:
        return "pymupdf"

    def _read_pdf(self, path: str) -> str:
        try:
            doc = fitz.open(path)
        except Exception as exc:
            logger.error("pdf_open_failed", path=path, error=str(exc))
            raise DocumentReadError(
                message=f"Could not open PDF {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pages: list[str] = []
        try:
            if doc.needs_pass:
                raise DocumentReadError(
                    message=f"PDF is password-protected: {path}",
                    provider_name=self.get_provider_name(),
                )
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        except DocumentReadError:
            raise
        except Exception as exc:
            logger.error("pdf_read_failed", path=path, error=str(exc))
            raise DocumentReadError(
                message=f"Could not read PDF {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            doc.close()
        return "\n\n".join(pages)

    def _read_text(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise DocumentReadError(
                message=f"Could not read {path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
