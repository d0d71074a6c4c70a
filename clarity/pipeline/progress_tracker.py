"""Turn progress tracking with callback-based listener notification.

Tracks the current step and latest status message for each RAG session
and broadcasts updates to registered listener callbacks.  Listeners are
keyed by session id so concurrent sessions never see each other's status.

    TurnPipeline --update()--> ProgressTracker --callback()--> WebSocket handler
                                               --callback()--> CLI status line

Delivery is fire-and-forget: :meth:`ProgressTracker.update` is synchronous
and never waits on a listener.  Synchronous callbacks run inline; coroutine
callbacks are scheduled as tasks on the running loop.  Listener errors are
logged and swallowed, so a broken listener cannot change a turn's outcome.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from clarity.models.pipeline import PipelineStep
from clarity.utils.logging import get_logger


@dataclass
class _SessionStatus:
    """Internal snapshot of a single session's progress."""

    step: PipelineStep = PipelineStep.CHECK_ATTACHMENTS
    message: str = ""


class ProgressTracker:
    """Tracks and broadcasts turn progress via callbacks.

    Listeners are called as ``callback(session_id, step, message)``.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, _SessionStatus] = {}
        self._listeners: dict[str, list[Callable]] = {}
        # Strong references to in-flight async deliveries.
        self._pending: set[asyncio.Task] = set()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, session_id: str, step: PipelineStep, message: str) -> None:
        """Record a status message and notify all listeners of *session_id*."""
        self._statuses[session_id] = _SessionStatus(step=step, message=message)

        self._logger.debug(
            "progress_update",
            session_id=session_id,
            step=step.value,
            message=message,
        )

        self._notify_listeners(session_id, step, message)

    def register_listener(self, session_id: str, callback: Callable) -> None:
        """Register a sync or async callback for a session's updates."""
        listeners = self._listeners.setdefault(session_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                session_id=session_id,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, session_id: str, callback: Callable) -> None:
        """Remove a previously registered callback (no-op if absent)."""
        listeners = self._listeners.get(session_id, [])
        if callback in listeners:
            listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered",
                session_id=session_id,
                remaining_listeners=len(listeners),
            )
        if not listeners:
            self._listeners.pop(session_id, None)

    def get_status(self, session_id: str) -> dict:
        """Return ``{"step": str, "message": str}`` for a session.

        Unknown sessions report the entry step with an empty message.
        """
        status = self._statuses.get(session_id) or _SessionStatus()
        return {"step": status.step.value, "message": status.message}

    def forget(self, session_id: str) -> None:
        """Drop all status and listeners kept for *session_id*."""
        self._statuses.pop(session_id, None)
        self._listeners.pop(session_id, None)

    async def drain(self) -> None:
        """Wait for in-flight async deliveries (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _notify_listeners(self, session_id: str, step: PipelineStep, message: str) -> None:
        for callback in list(self._listeners.get(session_id, [])):
            result = None
            try:
                result = callback(session_id, step, message)
                if asyncio.iscoroutine(result):
                    task = asyncio.get_running_loop().create_task(result)
                    self._pending.add(task)
                    task.add_done_callback(self._on_delivery_done)
            except Exception as exc:
                # No running loop: discard the coroutine instead of leaking it.
                if asyncio.iscoroutine(result):
                    result.close()
                self._logger.warning(
                    "listener_callback_error",
                    session_id=session_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )

    def _on_delivery_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.warning("listener_callback_error", error=str(exc))
