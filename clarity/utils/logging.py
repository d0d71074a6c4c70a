"""structlog configuration for Clarity.

Console output while developing, one JSON object per line in production
(``APP_ENV=production`` or ``json_output=True``).  Records emitted through
stdlib ``logging`` (uvicorn, httpx, openai) are rendered by the same chain.

A turn binds its session id with :func:`bind_session`; every event logged
while the turn runs (ingestion, retrieval, generation, provider calls)
carries ``session_id`` without it being passed around.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Chatty below WARNING; only surfaced when the app itself runs at DEBUG.
_NOISY_LIBRARIES = ("httpx", "httpcore", "openai", "primp", "duckduckgo_search")


def shared_processors() -> list[structlog.types.Processor]:
    """Processors applied before rendering, for structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON lines.  Otherwise JSON is used only when
                     ``APP_ENV`` is ``production``.

    Returns:
        The root structlog logger.
    """
    level = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    processors = shared_processors()

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = level if level == "DEBUG" else "WARNING"
    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with ``logger_name=name``.

    Configures logging with defaults on first use if nothing has yet.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


@contextmanager
def bind_session(session_id: str) -> Iterator[None]:
    """Attach ``session_id`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(session_id=session_id):
        yield
