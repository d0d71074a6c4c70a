"""WebSocket endpoint for real-time turn progress.

Subscribes the client to one session through the ``ProgressTracker``
listener mechanism and pushes every status message as JSON:

    {"session_id": "abc", "step": "RETRIEVE_CONTEXT", "message": "Searching documents..."}

The current status snapshot is sent right after the connection opens.
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from clarity.models.pipeline import PipelineStep
from clarity.pipeline.progress_tracker import ProgressTracker
from clarity.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_progress(websocket: WebSocket, session_id: str) -> None:
    """Stream turn progress for *session_id* until the client disconnects."""
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", session_id=session_id)

    async def _on_progress(sid: str, step: PipelineStep, message: str) -> None:
        # The socket may close between an update and the send.
        with contextlib.suppress(Exception):
            await websocket.send_json(
                {"session_id": sid, "step": step.value, "message": message}
            )

    progress_tracker.register_listener(session_id, _on_progress)

    try:
        status = progress_tracker.get_status(session_id)
        await websocket.send_json({"session_id": session_id, **status})

        # Blocks until the client disconnects.
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", session_id=session_id)

    finally:
        progress_tracker.unregister_listener(session_id, _on_progress)
        _logger.debug("websocket_listener_cleaned_up", session_id=session_id)
