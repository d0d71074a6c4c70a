"""In-memory RAG session store using cachetools.TTLCache.

Holds one :class:`RagSession` per conversation for the HTTP app.  Sessions
expire after ``ttl`` seconds without being looked up, and the least
recently used session is evicted once ``max_size`` is reached.  Nothing is
persisted: a restart discards every index.

Sessions dropped by expiry or eviction are reported through ``on_evict`` so
per-session state kept elsewhere (the progress tracker) can be released.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from cachetools import TTLCache

from clarity.services.session import RagSession
from clarity.utils.errors import SessionNotFoundError

logger = structlog.get_logger(logger_name=__name__)


class _SessionCache(TTLCache):
    """TTLCache that reports every session it drops on its own."""

    def __init__(
        self,
        maxsize: int,
        ttl: float,
        timer: Callable[[], float],
        on_evict: Callable[[str], None],
    ) -> None:
        super().__init__(maxsize=maxsize, ttl=ttl, timer=timer)
        self._on_evict = on_evict

    def popitem(self):  # noqa: ANN201
        key, value = super().popitem()
        logger.info("session_evicted", session_id=key)
        self._on_evict(key)
        return key, value

    def expire(self, time=None):  # noqa: ANN001, ANN201
        expired = super().expire(time)
        for key, _ in expired:
            logger.info("session_expired", session_id=key)
            self._on_evict(key)
        return expired


class MemorySessionStore:
    """TTL-bounded map of session id to :class:`RagSession`.

    Parameters
    ----------
    max_size:
        Maximum number of live sessions.
    ttl:
        Idle time-to-live in seconds.
    on_evict:
        Called with the session id of every session dropped by expiry or
        capacity eviction.  Not called for :meth:`delete`.
    timer:
        Clock used for expiry.
    """

    def __init__(
        self,
        max_size: int = 256,
        ttl: int = 6 * 60 * 60,
        on_evict: Callable[[str], None] | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions = _SessionCache(
            maxsize=max_size,
            ttl=ttl,
            timer=timer,
            on_evict=on_evict or (lambda session_id: None),
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> RagSession:
        """Create, store and return a fresh session."""
        session = RagSession()
        self._sessions[session.session_id] = session
        logger.info("session_created", session_id=session.session_id, live=len(self._sessions))
        return session

    def get(self, session_id: str) -> RagSession:
        """Return the session for *session_id*, refreshing its TTL.

        Raises
        ------
        SessionNotFoundError
            If the session never existed or has expired.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(message=f"Session not found: {session_id}")
        # Re-inserting restarts the idle timer.
        self._sessions[session_id] = session
        return session

    def expire(self) -> None:
        """Drop every expired session now instead of on the next write."""
        self._sessions.expire()

    def delete(self, session_id: str) -> None:
        """Remove *session_id* (no-op if absent)."""
        if self._sessions.pop(session_id, None) is not None:
            logger.info("session_deleted", session_id=session_id)
