"""Custom exception hierarchy for Clarity.

All application exceptions inherit from :class:`ClarityError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "pymupdf") caused the failure.

The hierarchy is organized by pipeline concern:

    ClarityError  (base -- catch-all for any Clarity error)
    +-- DocumentReadError     (attachment could not be read / parsed)
    +-- RAGError              (embedding or vector-index failure)
    +-- LLMError              (generation model call failure)
    +-- PipelineError         (invalid step transition)
    +-- ConfigurationError    (startup / missing config)
    +-- SessionNotFoundError  (unknown or expired RAG session)

Only :class:`DocumentReadError` is recovered inside a turn (the document is
skipped).  Everything else propagates to the hosting application as a
single turn failure.
"""


class ClarityError(Exception):
    """Base exception for all Clarity errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets, e.g.
    ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class DocumentReadError(ClarityError):
    """Raised when an attached document cannot be read or its text extracted.

    The ingestion service catches this, logs a warning and skips the
    document so one bad attachment never aborts the turn.
    """

    def __init__(
        self,
        message: str = "Document text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(ClarityError):
    """Raised when a RAG operation fails (embedding call or index insert)."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Generation errors
# ---------------------------------------------------------------------------

class LLMError(ClarityError):
    """Raised when a chat-model call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class PipelineError(ClarityError):
    """Raised when turn orchestration fails (invalid step transition, etc.)."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(ClarityError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SessionNotFoundError(ClarityError):
    """Raised when a turn references a session that does not exist (or expired)."""

    def __init__(
        self,
        message: str = "Session not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
