"""FastAPI routes for the Clarity coaching API.

Endpoint                                   Method  Description
/api/v1/health                             GET     Health check + provider status
/api/v1/sessions                           POST    Create a RAG session
/api/v1/sessions/{session_id}              GET     Ingested documents and index size
/api/v1/sessions/{session_id}              DELETE  Drop a session and its index
/api/v1/sessions/{session_id}/turns        POST    Run one conversational turn

Services are resolved from ``app.state`` (populated by the lifespan in
``clarity.main``) through ``Annotated[..., Depends(...)]`` aliases.
Application errors propagate to :class:`ErrorHandlingMiddleware`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from clarity.api.schemas import (
    HealthResponse,
    SessionResponse,
    SourceResponse,
    TurnRequest,
    TurnResponse,
)
from clarity.pipeline.orchestrator import TurnPipeline
from clarity.providers.session.memory_session_store import MemorySessionStore
from clarity.services.session import RagSession
from clarity.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


def _get_pipeline(request: Request) -> TurnPipeline:
    """Return the turn pipeline from application state."""
    return request.app.state.pipeline


def _get_session_store(request: Request) -> MemorySessionStore:
    """Return the session store from application state."""
    return request.app.state.session_store


PipelineDep = Annotated[TurnPipeline, Depends(_get_pipeline)]
SessionStoreDep = Annotated[MemorySessionStore, Depends(_get_session_store)]


def _get_upload_dir(request: Request) -> Path:
    """Return the directory HTTP attachments are confined to."""
    return Path(request.app.state.upload_dir).resolve()


UploadDirDep = Annotated[Path, Depends(_get_upload_dir)]


def confine_attachments(upload_dir: Path, attachments: list[str]) -> list[str]:
    """Resolve *attachments* against *upload_dir*.

    Relative paths are taken relative to *upload_dir*.  Returns the resolved
    absolute paths, in order.

    Raises
    ------
    HTTPException
        403 if any path resolves outside *upload_dir* (``..`` segments,
        absolute paths elsewhere, or symlinks pointing out).
    """
    resolved: list[str] = []
    for attachment in attachments:
        candidate = (upload_dir / attachment).resolve()
        if not candidate.is_relative_to(upload_dir):
            _logger.warning("attachment_outside_upload_dir", attachment=attachment)
            raise HTTPException(
                status_code=403,
                detail=f"Attachment is outside the upload directory: {attachment}",
            )
        resolved.append(str(candidate))
    return resolved


def _session_response(session: RagSession) -> SessionResponse:
    stats = session.stats()
    return SessionResponse(
        session_id=session.session_id,
        created_at=session.created_at,
        documents=sorted(session.ingested),
        total_chunks=stats.total_chunks,
        dimension=stats.dimension,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    store = getattr(request.app.state, "session_store", None)
    if store is not None:
        providers["sessions"] = len(store)

    status = "healthy" if providers.get("llm") and providers.get("embedding") else "degraded"
    return HealthResponse(status=status, version=_VERSION, providers=providers)


@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    summary="Create a RAG session",
)
async def create_session(store: SessionStoreDep) -> SessionResponse:
    session = store.create()
    return _session_response(session)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    summary="Inspect a RAG session",
)
async def get_session(session_id: str, store: SessionStoreDep) -> SessionResponse:
    return _session_response(store.get(session_id))


@router.delete(
    "/sessions/{session_id}",
    status_code=204,
    summary="Delete a RAG session",
)
async def delete_session(
    session_id: str, store: SessionStoreDep, pipeline: PipelineDep
) -> Response:
    store.get(session_id)
    store.delete(session_id)
    pipeline.progress_tracker.forget(session_id)
    return Response(status_code=204)


@router.post(
    "/sessions/{session_id}/turns",
    response_model=TurnResponse,
    summary="Run one conversational turn",
)
async def run_turn(
    session_id: str,
    body: TurnRequest,
    store: SessionStoreDep,
    pipeline: PipelineDep,
    upload_dir: UploadDirDep,
) -> TurnResponse:
    """Answer the latest user message, using attached documents when relevant.

    Attachments are paths under the configured upload directory.  Progress
    for the turn is streamed on ``/ws/progress/{session_id}``.
    """
    session = store.get(session_id)
    attachments = confine_attachments(upload_dir, body.attachments)
    result = await pipeline.run(
        session,
        [message.model_dump() for message in body.messages],
        attached_documents=attachments,
    )
    _logger.info(
        "turn_served",
        session_id=session_id,
        used_document_context=result.used_document_context,
        sources=len(result.sources),
    )
    return TurnResponse(
        content=result.content,
        sources=[SourceResponse(title=s.title, url=s.url) for s in result.sources],
        steps=[step.value for step in result.visited_steps],
        used_document_context=result.used_document_context,
    )
