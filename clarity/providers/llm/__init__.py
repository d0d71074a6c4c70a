"""Chat model provider adapters.

OpenAIChatProvider implements IChatProvider (clarity/interfaces/llm_provider.py)
for OpenAI and any OpenAI-compatible endpoint.
"""

from clarity.providers.llm.openai_provider import OpenAIChatProvider

__all__ = ["OpenAIChatProvider"]
