"""Pydantic request/response schemas for the Clarity HTTP API.

Request schemas end with ``Request``, response schemas with ``Response``.
FastAPI validates incoming JSON against them (422 on mismatch) and
serialises responses through ``response_model``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class MessageInput(BaseModel):
    """One conversation message as sent by the client."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str = ""


class TurnRequest(BaseModel):
    """Conversation history (ending with the new user message) plus attachments."""

    messages: list[MessageInput] = Field(..., min_length=1)
    attachments: list[str] = Field(
        default_factory=list,
        description=(
            "Paths, relative to the server's upload directory, of every document "
            "attached so far."
        ),
    )


class SourceResponse(BaseModel):
    """A web article cited by the answer."""

    title: str
    url: str


class TurnResponse(BaseModel):
    """Assistant reply for one turn."""

    content: str
    sources: list[SourceResponse] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    used_document_context: bool = False


class SessionResponse(BaseModel):
    """State of one RAG session."""

    session_id: str
    created_at: datetime
    documents: list[str] = Field(default_factory=list)
    total_chunks: int = 0
    dimension: int | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
