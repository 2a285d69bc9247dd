"""
Anthropic chat provider with native tool_use blocks.

See: https://docs.anthropic.com/claude/docs/tool-use
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from anthropic import AnthropicError, AsyncAnthropic

from assistant_chat.abstractions.dto.tools import ToolDescriptor
from assistant_chat.domain.exceptions import ProviderError
from assistant_chat.infrastructure.config import ProviderSettings
from assistant_chat.providers.base.models import (
    ChatMessage,
    FinalMessage,
    ToolCallBatch,
    ToolCallRequest,
    TurnResult,
)
from .base import BaseChatProvider, ThreadState

logger = logging.getLogger(__name__)


class AnthropicChatProvider(BaseChatProvider):
    """
    Thread-based provider over the Anthropic Messages API.
    """

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[Any] = None,
    ) -> None:
        super().__init__()
        defaults = ProviderSettings.for_provider("anthropic")
        self.api_key = api_key or defaults.api_key
        self.model = model or defaults.model
        self.temperature = defaults.temperature if temperature is None else temperature
        self.max_tokens = max_tokens or defaults.max_tokens

        self.client = client or AsyncAnthropic(api_key=self.api_key)

    def get_tool_definition(self, tool: ToolDescriptor) -> Dict[str, Any]:
        """Tool definition in Anthropic's format."""
        return {"name": tool.name, "description": tool.description, "input_schema": tool.raw_schema}

    def format_result(self, message: ChatMessage) -> Dict[str, Any]:
        block: Dict[str, Any] = {"type": "tool_result", "tool_use_id": message.call_id, "content": message.content}
        if message.is_error:
            block["is_error"] = True
        return block

    def _to_native(self, thread: ThreadState, message: ChatMessage) -> None:
        if message.role == "tool":
            block = self.format_result(message)
            last = thread.messages[-1] if thread.messages else None
            # All results for one tool_use turn belong in a single user message
            if last and last["role"] == "user" and isinstance(last["content"], list):
                last["content"].append(block)
            else:
                thread.messages.append({"role": "user", "content": [block]})
        elif message.role == "system":
            thread.messages.append({"role": "user", "content": message.content})
        elif message.role == "assistant" and not (message.content or "").strip():
            # The Messages API rejects blank assistant turns; history still keeps it
            logger.debug("Not sending an empty assistant message")
        else:
            thread.messages.append({"role": message.role, "content": message.content})

    @staticmethod
    def _block_to_dict(block: Any) -> Dict[str, Any]:
        kind = getattr(block, "type", "")
        if kind == "tool_use":
            return {"type": "tool_use", "id": block.id, "name": block.name, "input": dict(block.input or {})}
        return {"type": "text", "text": getattr(block, "text", "") or ""}

    async def _complete(self, thread: ThreadState) -> TurnResult:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": thread.instructions,
            "messages": thread.messages,
            "temperature": self.temperature,
        }
        if thread.tools:
            payload["tools"] = [self.get_tool_definition(t) for t in thread.tools]

        try:
            response = await self.client.messages.create(**payload)
        except AnthropicError as e:
            raise ProviderError(f"anthropic request failed: {e}", provider=self.provider_name) from e
        self._record_usage(getattr(response, "usage", None))

        blocks = list(getattr(response, "content", None) or [])
        text = "".join(getattr(b, "text", "") or "" for b in blocks if getattr(b, "type", "") == "text")
        tool_uses = [b for b in blocks if getattr(b, "type", "") == "tool_use"]
        if not tool_uses:
            return FinalMessage(content=text)

        thread.messages.append({"role": "assistant", "content": [self._block_to_dict(b) for b in blocks]})
        if text:
            thread.history.append(ChatMessage(role="assistant", content=text))
        calls: List[ToolCallRequest] = [
            ToolCallRequest.from_mapping(b.id, b.name, dict(b.input or {})) for b in tool_uses
        ]
        return ToolCallBatch(calls=calls)


__all__ = ["AnthropicChatProvider"]
