"""Splice retrieved document context into the latest user turn.

The rewritten turn keeps the ``id`` and list position of the turn it
replaces, so history consumers see an edit rather than a new message.
"""

from __future__ import annotations

from collections.abc import Sequence

from clarity.models.messages import Turn, last_user_turn_index

AUGMENTATION_TEMPLATE = (
    "Use the following context retrieved from the user's uploaded documents:"
    "\n\n{context}\n\n---\n\nOriginal request: {request}"
)


def compose_augmented_content(retrieved_context: str, original_request: str) -> str:
    return AUGMENTATION_TEMPLATE.format(context=retrieved_context, request=original_request)


def augment(
    messages: Sequence[Turn],
    retrieved_context: str,
    original_request: str,
) -> list[Turn]:
    """Return a copy of *messages* with the last user turn rewritten.

    The new content is an instruction to use the context, the context
    verbatim, a ``---`` separator and the original request verbatim.  When
    there is no user turn the messages are returned unchanged.
    """
    rewritten = list(messages)
    index = last_user_turn_index(rewritten)
    if index is None:
        return rewritten

    rewritten[index] = rewritten[index].model_copy(
        update={"content": compose_augmented_content(retrieved_context, original_request)}
    )
    return rewritten
