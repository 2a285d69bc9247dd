"""
Aggregator and exports for the provider adapters.
"""

from assistant_chat.domain.exceptions import (
    ProviderError,
    PendingToolCallsError,
    ThreadNotFoundError,
)

__all__ = [
    "ProviderError",
    "PendingToolCallsError",
    "ThreadNotFoundError",
    "OpenAIChatProvider",
    "LlamaChatProvider",
    "AnthropicChatProvider",
]


def __getattr__(name):
    # SDK-backed adapters are imported on first use
    if name == "OpenAIChatProvider":
        from assistant_chat.infrastructure.llm.openai_compatible import OpenAIChatProvider
        return OpenAIChatProvider
    if name == "LlamaChatProvider":
        from assistant_chat.infrastructure.llm.llama_chat import LlamaChatProvider
        return LlamaChatProvider
    if name == "AnthropicChatProvider":
        from assistant_chat.infrastructure.llm.anthropic_chat import AnthropicChatProvider
        return AnthropicChatProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
