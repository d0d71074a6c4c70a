"""Per-turn orchestrator for the Clarity RAG pipeline.

Drives one conversational turn through the step machine defined in
:mod:`clarity.pipeline.transitions`:

    CHECK_ATTACHMENTS -> [CHUNK_AND_INDEX] -> [RETRIEVE_CONTEXT]
                      -> [AUGMENT_PROMPT] -> GENERATE_RESPONSE -> END

Each step handler receives the frozen :class:`TurnState`, returns a new one
via ``model_copy``, and reports progress through the injected
:class:`ProgressTracker`.  The only state that outlives a turn is the
:class:`RagSession` passed in by the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from clarity.models.messages import Turn, turns_from_history
from clarity.models.pipeline import PipelineStep, TurnResult, TurnState
from clarity.pipeline.progress_tracker import ProgressTracker
from clarity.pipeline.transitions import next_step
from clarity.services.prompt_augmenter import augment
from clarity.utils.errors import PipelineError
from clarity.utils.logging import bind_session, get_logger

if TYPE_CHECKING:
    from clarity.models.pipeline import StatusCallback
    from clarity.services.coach_agent import CoachAgent
    from clarity.services.ingestion.ingestion_service import IngestionService
    from clarity.services.retrieval_policy import RetrievalPolicy
    from clarity.services.session import RagSession

_StepHandler = Callable[["RagSession", TurnState, "StatusCallback"], Awaitable[TurnState]]


class TurnPipeline:
    """Runs a single user turn against a :class:`RagSession`.

    All collaborators are injected.  ``progress_tracker`` defaults to a
    private tracker when the host does not need to observe other sessions.
    """

    def __init__(
        self,
        ingestion_service: IngestionService,
        retrieval_policy: RetrievalPolicy,
        coach_agent: CoachAgent,
        progress_tracker: ProgressTracker | None = None,
    ) -> None:
        self._ingestion_service = ingestion_service
        self._retrieval_policy = retrieval_policy
        self._coach_agent = coach_agent
        self._progress_tracker = progress_tracker or ProgressTracker()
        self._logger: structlog.BoundLogger = get_logger(__name__)
        self._handlers: dict[PipelineStep, _StepHandler] = {
            PipelineStep.CHECK_ATTACHMENTS: self._check_attachments,
            PipelineStep.CHUNK_AND_INDEX: self._chunk_and_index,
            PipelineStep.RETRIEVE_CONTEXT: self._retrieve_context,
            PipelineStep.AUGMENT_PROMPT: self._augment_prompt,
            PipelineStep.GENERATE_RESPONSE: self._generate_response,
        }

    @property
    def progress_tracker(self) -> ProgressTracker:
        return self._progress_tracker

    async def run(
        self,
        session: RagSession,
        history: Iterable[Mapping[str, Any] | Turn],
        attached_documents: Sequence[str] = (),
        on_status: StatusCallback | None = None,
    ) -> TurnResult:
        """Run one turn and return the assistant reply.

        Parameters
        ----------
        session:
            Per-conversation index and ingested-document set.  Mutated in
            place by the chunk-and-index step.
        history:
            Conversation so far, ending with the new user message.  Plain
            ``{"role", "content"}`` mappings are accepted.
        attached_documents:
            Every document attached to the conversation so far.  Already
            ingested ones are not re-processed.
        on_status:
            Optional progress sink for this turn only.

        Raises
        ------
        clarity.utils.errors.RAGError
            When embedding or indexing fails.
        clarity.utils.errors.LLMError
            When the chat model call fails.
        """
        state = TurnState.start(
            session.session_id, turns_from_history(history), attached_documents
        )
        with bind_session(session.session_id):
            return await self._run_steps(session, state, on_status)

    async def _run_steps(
        self,
        session: RagSession,
        state: TurnState,
        on_status: StatusCallback | None,
    ) -> TurnResult:
        listener = _StatusRelay(on_status) if on_status is not None else None
        if listener is not None:
            self._progress_tracker.register_listener(session.session_id, listener)

        self._logger.info(
            "turn_start",
            messages=len(state.messages),
            attachments=len(state.attached_documents),
        )

        step = PipelineStep.CHECK_ATTACHMENTS
        try:
            while step is not PipelineStep.END:
                state = state.model_copy(
                    update={
                        "current_step": step,
                        "visited_steps": [*state.visited_steps, step],
                    }
                )
                self._logger.debug("turn_step", step=step.value)
                notify = self._notifier(session.session_id, step)
                state = await self._handlers[step](session, state, notify)
                step = next_step(step, state, session.ingested)
        except Exception as exc:
            self._logger.error("turn_failed", step=step.value, error=str(exc))
            raise
        finally:
            if listener is not None:
                self._progress_tracker.unregister_listener(session.session_id, listener)

        state = state.model_copy(
            update={
                "current_step": PipelineStep.END,
                "completed_at": datetime.now(tz=timezone.utc),  # noqa: UP017
            }
        )
        self._logger.info(
            "turn_complete",
            steps=[visited.value for visited in state.visited_steps],
            used_context=state.retrieved_context is not None,
            sources=len(state.sources),
            duration_seconds=round(
                (state.completed_at - state.started_at).total_seconds(), 3
            ),
        )
        return TurnResult(
            content=state.response or "",
            sources=state.sources,
            visited_steps=state.visited_steps,
            retrieved_context=state.retrieved_context,
        )

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    async def _check_attachments(
        self, session: RagSession, state: TurnState, notify: StatusCallback
    ) -> TurnState:
        notify("Checking for attachments...")
        return state

    async def _chunk_and_index(
        self, session: RagSession, state: TurnState, notify: StatusCallback
    ) -> TurnState:
        notify("Parsing documents...")
        result = await self._ingestion_service.ingest(
            session, state.attached_documents, notify=notify
        )
        return state.model_copy(update={"ingestion": result})

    async def _retrieve_context(
        self, session: RagSession, state: TurnState, notify: StatusCallback
    ) -> TurnState:
        notify("Searching documents...")
        context = await self._retrieval_policy.retrieve(session, state.original_request)
        return state.model_copy(update={"retrieved_context": context})

    async def _augment_prompt(
        self, session: RagSession, state: TurnState, notify: StatusCallback
    ) -> TurnState:
        if not state.retrieved_context:
            raise PipelineError(message="Cannot augment the prompt without retrieved context")
        notify("Augmenting prompt with document context...")
        messages = augment(state.messages, state.retrieved_context, state.original_request)
        return state.model_copy(update={"messages": messages})

    async def _generate_response(
        self, session: RagSession, state: TurnState, notify: StatusCallback
    ) -> TurnState:
        generation = await self._coach_agent.respond(state.messages, notify=notify)
        return state.model_copy(
            update={"response": generation.content, "sources": generation.sources}
        )

    def _notifier(self, session_id: str, step: PipelineStep) -> StatusCallback:
        def notify(message: str) -> None:
            self._progress_tracker.update(session_id, step, message)

        return notify


class _StatusRelay:
    """Adapts a ``callback(message)`` sink to the tracker's listener signature."""

    def __init__(self, on_status: StatusCallback) -> None:
        self._on_status = on_status
        self.__name__ = getattr(on_status, "__name__", "on_status")

    def __call__(self, session_id: str, step: PipelineStep, message: str) -> Any:
        return self._on_status(message)
