"""Clarity FastAPI application entry point.

Wires providers, services and routes together by dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes :func:`build_turn_pipeline` for the CLI and for scripting
outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import openai
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from clarity.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from clarity.api.routes import router as api_router
from clarity.api.websocket import websocket_progress
from clarity.config.loader import load_config
from clarity.config.settings import Settings
from clarity.pipeline.orchestrator import TurnPipeline
from clarity.pipeline.progress_tracker import ProgressTracker
from clarity.providers.document.pymupdf_reader import PyMuPDFDocumentReader
from clarity.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from clarity.providers.llm.openai_provider import OpenAIChatProvider
from clarity.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from clarity.providers.session.memory_session_store import MemorySessionStore
from clarity.services.coach_agent import (
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TOOL_DESCRIPTION,
    DEFAULT_TOOL_NAME,
    CoachAgent,
)
from clarity.services.ingestion import IngestionService, TextChunker
from clarity.services.retrieval_policy import RetrievalPolicy
from clarity.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Pipeline assembly
# ---------------------------------------------------------------------------


def _build_openai_client(
    app_settings: Settings, http_client: httpx.AsyncClient | None = None
) -> openai.AsyncOpenAI:
    client_kwargs: dict = {
        "api_key": app_settings.openai_api_key or "unset",
        "timeout": openai.Timeout(app_settings.openai_timeout, connect=5.0),
    }
    if app_settings.openai_base_url:
        client_kwargs["base_url"] = app_settings.openai_base_url
    if http_client is not None:
        client_kwargs["http_client"] = http_client
    return openai.AsyncOpenAI(**client_kwargs)


def build_turn_pipeline(
    app_settings: Settings,
    config: dict[str, Any],
    progress_tracker: ProgressTracker | None = None,
    openai_client: openai.AsyncOpenAI | None = None,
) -> TurnPipeline:
    """Construct a :class:`TurnPipeline` with the production providers.

    Parameters
    ----------
    app_settings:
        Environment settings (models, RAG tuning, search toggles).
    config:
        Resolved YAML config from :func:`load_config`; supplies the coaching
        system prompt and the search tool wording and domains.
    progress_tracker:
        Shared tracker, so the WebSocket endpoint sees the same updates.
    openai_client:
        Client shared by the chat and embedding providers.
    """
    client = openai_client or _build_openai_client(app_settings)
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings, client=client)
    chat_provider = OpenAIChatProvider(settings=app_settings, client=client)

    ingestion_service = IngestionService(
        reader=PyMuPDFDocumentReader(),
        chunker=TextChunker(
            chunk_size=app_settings.chunk_size,
            overlap=app_settings.chunk_overlap,
        ),
        embedding_provider=embedding_provider,
    )
    retrieval_policy = RetrievalPolicy(
        embedding_provider=embedding_provider,
        focused_top_k=app_settings.rag_focused_top_k,
        ambient_top_k=app_settings.rag_ambient_top_k,
        min_similarity=app_settings.rag_min_similarity,
    )

    search_config = config.get("search", {}) or {}
    coach_config = config.get("coach", {}) or {}
    web_search = None
    if app_settings.search_enabled:
        web_search = DuckDuckGoSearchProvider(
            include_domains=search_config.get("include_domains", []) or []
        )

    coach_agent = CoachAgent(
        llm=chat_provider,
        web_search=web_search,
        system_prompt=(coach_config.get("system_prompt") or DEFAULT_SYSTEM_PROMPT).strip(),
        tool_name=search_config.get("tool_name", DEFAULT_TOOL_NAME),
        tool_description=search_config.get("tool_description", DEFAULT_TOOL_DESCRIPTION),
        max_results=app_settings.search_max_results,
        max_tool_rounds=app_settings.agent_max_tool_rounds,
        temperature=app_settings.agent_temperature,
        max_tokens=app_settings.agent_max_tokens,
    )

    return TurnPipeline(
        ingestion_service=ingestion_service,
        retrieval_policy=retrieval_policy,
        coach_agent=coach_agent,
        progress_tracker=progress_tracker,
    )


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    config = load_config(settings=app_settings)

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.openai_timeout)
    progress_tracker = ProgressTracker()

    pipeline = build_turn_pipeline(
        app_settings,
        config,
        progress_tracker=progress_tracker,
        openai_client=_build_openai_client(app_settings, http_client),
    )
    session_store = MemorySessionStore(
        max_size=app_settings.session_max_count,
        ttl=app_settings.session_ttl,
        on_evict=progress_tracker.forget,
    )

    provider_registry: dict[str, Any] = {
        "llm": bool(app_settings.openai_api_key),
        "embedding": bool(app_settings.openai_api_key),
        "web_search": app_settings.search_enabled,
        "available": app_settings.get_available_providers(),
    }

    return {
        "settings": app_settings,
        "config": config,
        "http_client": http_client,
        "progress_tracker": progress_tracker,
        "pipeline": pipeline,
        "session_store": session_store,
        "upload_dir": Path(app_settings.upload_dir).resolve(),
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    *components* replaces :func:`_build_all` at startup; it must provide at
    least ``pipeline``, ``progress_tracker``, ``session_store`` and
    ``upload_dir``.
    """

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        built = components if components is not None else _build_all(settings)
        for key, value in built.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=_VERSION,
            environment=settings.app_env,
            providers=built.get("provider_registry", {}),
        )

        yield

        await built["progress_tracker"].drain()
        http_client: httpx.AsyncClient | None = built.get("http_client")
        if http_client is not None:
            await http_client.aclose()
        _logger.info("app_shutdown")

    application = FastAPI(
        title="Clarity API",
        version=_VERSION,
        description=(
            "Executive-coaching assistant that answers with research-backed advice "
            "and grounds replies in documents attached to the conversation."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/progress/{session_id}")
    async def ws_progress(websocket: WebSocket, session_id: str) -> None:
        await websocket_progress(websocket, session_id)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "clarity.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
