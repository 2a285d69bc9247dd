"""
Composition module for DI (edge wiring).
"""

from __future__ import annotations

from typing import Iterable, Optional, TYPE_CHECKING

from assistant_chat.infrastructure.config import AssistantConfig

if TYPE_CHECKING:
    from assistant_chat.agents.assistant import Assistant
    from assistant_chat.infrastructure.llm.base import BaseChatProvider
    from assistant_chat.infrastructure.tools.tool_base import ToolSet
    from assistant_chat.interfaces.agents.knowledge import IKnowledgeAgent

PROVIDERS = ("openai", "anthropic", "llama")


def build_provider(
    provider: str,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> "BaseChatProvider":
    """
    Construct and return a chat provider based on provider choice.
    """
    provider = (provider or "").strip().lower()
    if provider == "openai":
        from assistant_chat.infrastructure.llm.openai_compatible import OpenAIChatProvider
        return OpenAIChatProvider(api_key=api_key, base_url=base_url, model=model)
    if provider == "anthropic":
        from assistant_chat.infrastructure.llm.anthropic_chat import AnthropicChatProvider
        return AnthropicChatProvider(api_key=api_key, model=model)
    if provider == "llama":
        from assistant_chat.infrastructure.llm.llama_chat import LlamaChatProvider
        return LlamaChatProvider(api_key=api_key, base_url=base_url, model=model)
    raise ValueError(f"Unknown provider '{provider}' (expected one of: {', '.join(PROVIDERS)})")


def build_assistant(
    provider: "BaseChatProvider",
    instructions: str,
    toolsets: Iterable["ToolSet"] = (),
    knowledge_agent: Optional["IKnowledgeAgent"] = None,
    max_iterations: Optional[int] = None,
) -> "Assistant":
    """
    Construct an Assistant on the given provider.
    """
    from assistant_chat.agents.assistant import Assistant

    config = AssistantConfig() if max_iterations is None else AssistantConfig(max_iterations=max_iterations)
    return Assistant(provider, instructions, toolsets=toolsets, knowledge_agent=knowledge_agent, config=config)


__all__ = ["PROVIDERS", "build_provider", "build_assistant"]
