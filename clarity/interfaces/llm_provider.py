"""Abstract base class for chat-model providers.

Defines the contract for the generation model behind the coaching agent:
a multi-turn chat call that may answer directly or request tool calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from clarity.models.messages import AssistantTurn, ToolSpec, Turn


# Concrete implementation: OpenAIChatProvider (clarity/providers/llm/)
class IChatProvider(ABC):
    """Contract for chat-completion services used for response generation."""

    @abstractmethod
    async def chat(
        self,
        messages: Sequence[Turn],
        tools: Sequence[ToolSpec] | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> AssistantTurn:
        """Run one chat completion over *messages*.

        Parameters
        ----------
        messages:
            The full conversation, system turn first.
        tools:
            Tools the model may call.  ``None`` or empty disables tool use.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        AssistantTurn
            The model's reply.  ``tool_calls`` is non-empty when the model
            asks for tools instead of (or before) answering.

        Raises
        ------
        clarity.utils.errors.LLMError
            If the API call fails or returns no choices.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
