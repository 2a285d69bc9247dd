"""
assistant-chat: multi-turn LLM conversations with host-defined tools.
"""

from assistant_chat.agents.assistant import Assistant
from assistant_chat.agents.chats_holder import ChatsHolder
from assistant_chat.agents.knowledge_agent import AssistantKnowledgeAgent
from assistant_chat.abstractions.dto.tools import CallableParameter
from assistant_chat.domain.exceptions import (
    AssistantBusyError,
    AssistantChatError,
    ArgumentDecodeError,
    InvalidCallSyntaxError,
    TooManyAttemptsError,
    UnsupportedParameterTypeError,
)
from assistant_chat.infrastructure.config import AssistantConfig
from assistant_chat.infrastructure.llm.text_protocol import (
    parse_call_expression,
    split_preamble_target_body,
    unwrap_fence,
)
from assistant_chat.infrastructure.tools.tool_base import ToolSet

__version__ = "0.1.0"

__all__ = [
    "Assistant",
    "ChatsHolder",
    "AssistantKnowledgeAgent",
    "CallableParameter",
    "AssistantConfig",
    "ToolSet",
    "AssistantChatError",
    "AssistantBusyError",
    "TooManyAttemptsError",
    "InvalidCallSyntaxError",
    "ArgumentDecodeError",
    "UnsupportedParameterTypeError",
    "parse_call_expression",
    "split_preamble_target_body",
    "unwrap_fence",
]
