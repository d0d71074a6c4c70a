"""Utility modules for Clarity.

- **errors** -- Domain exception hierarchy rooted at ClarityError.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from clarity.utils.errors import (
    ClarityError,
    ConfigurationError,
    DocumentReadError,
    LLMError,
    PipelineError,
    RAGError,
    SessionNotFoundError,
)
from clarity.utils.logging import configure_logging, get_logger

__all__ = [
    "ClarityError",
    "ConfigurationError",
    "DocumentReadError",
    "LLMError",
    "PipelineError",
    "RAGError",
    "SessionNotFoundError",
    "configure_logging",
    "get_logger",
]
