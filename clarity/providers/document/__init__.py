"""Document reader adapters."""

from clarity.providers.document.pymupdf_reader import PyMuPDFDocumentReader

__all__ = ["PyMuPDFDocumentReader"]
