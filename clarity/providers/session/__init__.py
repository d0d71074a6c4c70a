"""RAG session storage."""

from clarity.providers.session.memory_session_store import MemorySessionStore

__all__ = ["MemorySessionStore"]
