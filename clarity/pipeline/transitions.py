"""Pure transition function of the per-turn pipeline state machine.

``next_step`` performs no I/O and mutates nothing, so routing can be tested
by handing it a :class:`TurnState` and the session's ingested-document set.
"""

from __future__ import annotations

from collections.abc import Set

from clarity.models.pipeline import PipelineStep, TurnState
from clarity.utils.errors import PipelineError


def next_step(step: PipelineStep, state: TurnState, ingested: Set[str]) -> PipelineStep:
    """Return the step that follows *step* for *state*.

    Rules:

    * ``CHECK_ATTACHMENTS``: nothing attached -> ``GENERATE_RESPONSE``; any
      attachment not yet ingested -> ``CHUNK_AND_INDEX``; otherwise
      ``RETRIEVE_CONTEXT``.
    * ``CHUNK_AND_INDEX`` -> ``RETRIEVE_CONTEXT``, even if nothing was indexed.
    * ``RETRIEVE_CONTEXT``: context found -> ``AUGMENT_PROMPT``, else
      ``GENERATE_RESPONSE``.
    * ``AUGMENT_PROMPT`` -> ``GENERATE_RESPONSE`` -> ``END``.

    Raises
    ------
    PipelineError
        When called with ``END``, which has no successor.
    """
    if step is PipelineStep.CHECK_ATTACHMENTS:
        if not state.attached_documents:
            return PipelineStep.GENERATE_RESPONSE
        if any(document not in ingested for document in state.attached_documents):
            return PipelineStep.CHUNK_AND_INDEX
        return PipelineStep.RETRIEVE_CONTEXT

    if step is PipelineStep.CHUNK_AND_INDEX:
        return PipelineStep.RETRIEVE_CONTEXT

    if step is PipelineStep.RETRIEVE_CONTEXT:
        if state.retrieved_context:
            return PipelineStep.AUGMENT_PROMPT
        return PipelineStep.GENERATE_RESPONSE

    if step is PipelineStep.AUGMENT_PROMPT:
        return PipelineStep.GENERATE_RESPONSE

    if step is PipelineStep.GENERATE_RESPONSE:
        return PipelineStep.END

    raise PipelineError(message=f"No transition out of step {step.value}")
