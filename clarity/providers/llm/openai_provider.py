"""OpenAI-compatible chat provider adapter.

Wraps the ``openai`` async client to implement :class:`IChatProvider`.
Turns are converted to the Chat Completions message format, tools to
function-calling definitions, and the reply back into an
:class:`AssistantTurn`.  When ``openai_base_url`` is configured the client
points at that endpoint instead of api.openai.com.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import openai
import structlog

from clarity.config.settings import Settings
from clarity.interfaces.llm_provider import IChatProvider
from clarity.models.messages import (
    AssistantTurn,
    SystemTurn,
    ToolCall,
    ToolSpec,
    ToolTurn,
    Turn,
    UserTurn,
)
from clarity.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


def turn_to_message(turn: Turn) -> dict[str, Any]:
    """Convert a turn into a Chat Completions message dict."""
    if isinstance(turn, (SystemTurn, UserTurn)):
        return {"role": turn.role, "content": turn.content}
    if isinstance(turn, AssistantTurn):
        message: dict[str, Any] = {"role": "assistant", "content": turn.content or None}
        if turn.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in turn.tool_calls
            ]
        return message
    if isinstance(turn, ToolTurn):
        return {"role": "tool", "tool_call_id": turn.tool_call_id, "content": turn.content}
    raise TypeError(f"Unsupported turn type: {type(turn).__name__}")


def tool_to_function(tool: ToolSpec) -> dict[str, Any]:
    """Convert a tool spec into a function-calling tool definition."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }


class OpenAIChatProvider(IChatProvider):
    """Chat provider backed by an OpenAI-compatible API.

    Uses ``gpt-4.1-mini`` by default; override with ``OPENAI_CHAT_MODEL``.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._timeout = settings.openai_timeout

        if client is None:
            client_kwargs: dict = {
                "api_key": self._api_key or "unset",
                "timeout": openai.Timeout(self._timeout, connect=5.0),
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)

        self._client = client
        self._model = settings.openai_chat_model or "gpt-4.1-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # IChatProvider implementation
    # ------------------------------------------------------------------

    async def chat(
        self,
        messages: Sequence[Turn],
        tools: Sequence[ToolSpec] | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> AssistantTurn:
        request: dict[str, Any] = {
            "model": self._model,
            "messages": [turn_to_message(turn) for turn in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if tools:
            request["tools"] = [tool_to_function(tool) for tool in tools]

        try:
            response = await self._client.chat.completions.create(**request)
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out after {self._timeout:g}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.choices:
            raise LLMError(
                message=f"{self._provider_label} returned no choices",
                provider_name=self.get_provider_name(),
            )

        message = response.choices[0].message
        tool_calls = tuple(
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
            for call in (message.tool_calls or [])
        )
        logger.info(
            "openai_chat_completion",
            model=self._model,
            provider=self._provider_label,
            tool_calls=len(tool_calls),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return AssistantTurn(content=message.content or "", tool_calls=tool_calls)

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)
