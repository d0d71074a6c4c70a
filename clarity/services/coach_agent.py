"""The Clarity coaching agent -- generation with an optional web-search tool.

Runs a short tool-calling loop over an :class:`IChatProvider`:

    1. Send the system prompt plus the (possibly augmented) conversation,
       offering the ``search_articles`` tool.
    2. If the model requests searches, run each one through the
       :class:`IWebSearchProvider` and append the results as tool turns
       (a JSON array of ``{title, url, content}`` objects).
    3. Repeat until the model answers without tool calls.  The last allowed
       round offers no tools, which forces a final answer.

Citations shown to the user are extracted from the tool turns of this
generation only (see :mod:`clarity.services.source_extractor`).
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from clarity.models.messages import AssistantTurn, SystemTurn, ToolCall, ToolSpec, ToolTurn, Turn
from clarity.models.pipeline import GenerationResult
from clarity.services.source_extractor import extract_sources

if TYPE_CHECKING:
    from clarity.interfaces.llm_provider import IChatProvider
    from clarity.interfaces.web_search_provider import IWebSearchProvider
    from clarity.models.pipeline import StatusCallback

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are Clarity, a concise and high-performance executive coach. You help leaders "
    "think through challenges, develop self-awareness, and take purposeful action."
)
DEFAULT_TOOL_NAME = "search_articles"
DEFAULT_TOOL_DESCRIPTION = (
    "Search for psychology, leadership, and management research articles."
)


class CoachAgent:
    """Generates the assistant reply for one turn.

    Parameters
    ----------
    llm:
        Chat model used for every round.
    web_search:
        Backs the search tool.  ``None`` disables tool use entirely.
    system_prompt:
        Prepended to every conversation as a :class:`SystemTurn`.
    max_results:
        Results requested per search.
    max_tool_rounds:
        Maximum rounds in which the model may call tools.
    """

    def __init__(
        self,
        llm: IChatProvider,
        web_search: IWebSearchProvider | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        tool_name: str = DEFAULT_TOOL_NAME,
        tool_description: str = DEFAULT_TOOL_DESCRIPTION,
        max_results: int = 3,
        max_tool_rounds: int = 4,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> None:
        self._llm = llm
        self._web_search = web_search
        self._system_prompt = system_prompt
        self._max_results = max_results
        self._max_tool_rounds = max_tool_rounds
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._tool = ToolSpec(
            name=tool_name,
            description=tool_description,
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "The search query."},
                },
                "required": ["query"],
            },
        )

    @property
    def tools(self) -> list[ToolSpec]:
        return [self._tool] if self._web_search is not None else []

    async def respond(
        self,
        messages: Sequence[Turn],
        notify: StatusCallback | None = None,
    ) -> GenerationResult:
        """Generate the reply to *messages*.

        Raises
        ------
        clarity.utils.errors.LLMError
            If any chat call fails; the error is not retried here.
        """
        if notify is not None:
            notify("Thinking...")

        conversation: list[Turn] = [SystemTurn(content=self._system_prompt), *messages]
        transcript: list[Turn] = []

        round_index = 0
        while True:
            offer_tools = self.tools if round_index < self._max_tool_rounds else []
            reply = await self._llm.chat(
                conversation,
                tools=offer_tools or None,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            conversation.append(reply)
            transcript.append(reply)

            if not reply.tool_calls:
                break

            if notify is not None:
                notify("Searching articles...")
            for call in reply.tool_calls:
                tool_turn = await self._run_tool(call)
                conversation.append(tool_turn)
                transcript.append(tool_turn)
            if notify is not None:
                notify("Reading results...")

            round_index += 1
            if round_index > self._max_tool_rounds:
                break

        sources = extract_sources(transcript)
        logger.info(
            "generation_complete",
            provider=self._llm.get_provider_name(),
            rounds=sum(1 for turn in transcript if isinstance(turn, AssistantTurn)),
            tool_calls=sum(1 for turn in transcript if isinstance(turn, ToolTurn)),
            sources=len(sources),
        )
        return GenerationResult(content=reply.content, sources=sources, transcript=transcript)

    async def _run_tool(self, call: ToolCall) -> ToolTurn:
        """Execute one tool call and wrap its output as a :class:`ToolTurn`."""
        if self._web_search is None or call.name != self._tool.name:
            logger.warning("unknown_tool_call", tool=call.name)
            return ToolTurn(
                tool_call_id=call.id, name=call.name, content=f"Unknown tool: {call.name}"
            )

        try:
            arguments = json.loads(call.arguments or "{}")
        except ValueError:
            arguments = {}
        query = arguments.get("query") if isinstance(arguments, dict) else None
        if not query or not isinstance(query, str):
            logger.warning("tool_call_missing_query", tool=call.name, arguments=call.arguments)
            return ToolTurn(
                tool_call_id=call.id, name=call.name, content="Error: a 'query' string is required."
            )

        results = await self._web_search.search(query, num_results=self._max_results)
        payload = [
            {"title": result.title, "url": result.url, "content": result.snippet or ""}
            for result in results
        ]
        logger.debug("tool_call_complete", tool=call.name, query=query, results=len(payload))
        return ToolTurn(tool_call_id=call.id, name=call.name, content=json.dumps(payload))
