"""Conversation turn models -- a closed sum type discriminated on ``role``.

Every turn carries a stable ``id`` so consumers that track turn identity
(UI message keys, conversation-history diffing) can tell an *edit* (same
``id``, new content) from an *insertion*.  Prompt augmentation relies on
this: it rewrites the latest :class:`UserTurn` in place via
``model_copy(update={"content": ...})`` which keeps the ``id``.

The four variants are:

    SystemTurn     -- instructions for the model (never shown to the user)
    UserTurn       -- a message written by the user
    AssistantTurn  -- a model reply, optionally requesting tool calls
    ToolTurn       -- the output of a tool call, linked by ``tool_call_id``

Code that inspects or rewrites turns handles each variant explicitly and
raises ``TypeError`` for anything else.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping, Sequence
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def _new_turn_id() -> str:
    return str(uuid.uuid4())


class ToolCall(BaseModel):
    """A function call requested by the model inside an :class:`AssistantTurn`."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    # Raw JSON string exactly as produced by the model; parsed by the caller.
    arguments: str = "{}"


class ToolSpec(BaseModel):
    """Declaration of a tool the model may call (JSON-schema parameters)."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class _TurnBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_turn_id)
    content: str = ""


class SystemTurn(_TurnBase):
    role: Literal["system"] = "system"


class UserTurn(_TurnBase):
    role: Literal["user"] = "user"


class AssistantTurn(_TurnBase):
    role: Literal["assistant"] = "assistant"
    tool_calls: tuple[ToolCall, ...] = ()


class ToolTurn(_TurnBase):
    role: Literal["tool"] = "tool"
    tool_call_id: str
    name: str = ""


Turn = Annotated[
    SystemTurn | UserTurn | AssistantTurn | ToolTurn,
    Field(discriminator="role"),
]

_TURN_ADAPTER: TypeAdapter[Turn] = TypeAdapter(Turn)


def turn_from_dict(data: Mapping[str, Any]) -> Turn:
    """Validate a ``{"role": ..., "content": ...}`` mapping into a turn variant."""
    return _TURN_ADAPTER.validate_python(dict(data))


def turns_from_history(history: Iterable[Mapping[str, Any] | Turn]) -> list[Turn]:
    """Normalise a host-supplied history (dicts or turns) into turn models."""
    turns: list[Turn] = []
    for item in history:
        if isinstance(item, (SystemTurn, UserTurn, AssistantTurn, ToolTurn)):
            turns.append(item)
        else:
            turns.append(turn_from_dict(item))
    return turns


def last_user_turn_index(messages: Sequence[Turn]) -> int | None:
    """Return the index of the most recent :class:`UserTurn`, scanning from the end."""
    for index in range(len(messages) - 1, -1, -1):
        turn = messages[index]
        if isinstance(turn, UserTurn):
            return index
        if not isinstance(turn, (SystemTurn, AssistantTurn, ToolTurn)):
            raise TypeError(f"Unsupported turn type: {type(turn).__name__}")
    return None
