"""
OpenAI chat provider with native tool calling.

Works against the OpenAI Chat Completions API and any server exposing a
compatible `tools` / `tool_calls` surface.

Behavior:
- Registered callables are sent as `tools` (function definitions)
- `message.tool_calls` in a reply becomes a ToolCallBatch
- Tool results are sent back as `role="tool"` messages keyed by `tool_call_id`
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI, OpenAIError

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


class OpenAIChatProvider(BaseChatProvider):
    """
    Thread-based provider over the OpenAI Chat Completions API.

    Example:
        provider = OpenAIChatProvider(model="gpt-4o-mini")
        assistant = Assistant(provider, "You are a helpful assistant.")
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[Any] = None,
    ) -> None:
        super().__init__()
        defaults = self._default_settings()
        self.api_key = api_key or defaults.api_key
        self.base_url = base_url or defaults.base_url
        self.model = model or defaults.model
        self.temperature = defaults.temperature if temperature is None else temperature
        self.max_tokens = max_tokens or defaults.max_tokens

        self.client = client or AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    @classmethod
    def _default_settings(cls) -> ProviderSettings:
        return ProviderSettings.for_provider("openai")

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def _build_openai_tools(self, tools: List[ToolDescriptor]) -> List[Dict[str, Any]]:
        """
        Build OpenAI-compatible tools array from the thread's callables.
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": t.name,
                    "description": t.description,
                    "parameters": t.raw_schema,
                },
            }
            for t in tools
        ]

    def _to_native(self, thread: ThreadState, message: ChatMessage) -> None:
        if message.role == "tool":
            thread.messages.append({"role": "tool", "tool_call_id": message.call_id, "content": message.content})
        else:
            thread.messages.append({"role": message.role, "content": message.content})

    def _parse_args_safely(self, raw: Any) -> Dict[str, Any]:
        """
        Convert function call arguments to a dict robustly:
        - dict passthrough
        - JSON string (with or without ``` fences)
        - Extract first balanced {...} object from a string if needed
        """
        if isinstance(raw, dict):
            return raw
        if not isinstance(raw, str):
            return {}
        text = raw.strip()
        if not text:
            return {}
        if text.startswith("```"):
            end = text.find("```", 3)
            if end != -1:
                text = text[3:end].strip()
                if text.startswith("json"):
                    text = text[4:].strip()
        try:
            obj = json.loads(text)
            return obj if isinstance(obj, dict) else {}
        except json.JSONDecodeError:
            pass

        start = text.find("{")
        while start != -1:
            depth = 0
            for i in range(start, len(text)):
                ch = text[i]
                if ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                    if depth == 0:
                        try:
                            obj = json.loads(text[start:i + 1])
                        except json.JSONDecodeError:
                            break
                        if isinstance(obj, dict):
                            return obj
                        break
            start = text.find("{", start + 1)
        logger.warning("Could not decode tool call arguments: %r", raw)
        return {}

    def _adapt_openai_tool_calls(self, tool_calls: Any) -> List[Tuple[ToolCallRequest, str]]:
        """
        Adapt OpenAI native message.tool_calls into ToolCallRequests.

        Returns each request with the raw argument string so the assistant
        message can be echoed back verbatim.
        """
        out: List[Tuple[ToolCallRequest, str]] = []
        for call in tool_calls or []:
            fn = getattr(call, "function", None) or (call.get("function") if isinstance(call, dict) else None) or {}
            if isinstance(fn, dict):
                raw_name = str(fn.get("name") or "")
                raw_args = fn.get("arguments")
            else:
                raw_name = str(getattr(fn, "name", "") or "")
                raw_args = getattr(fn, "arguments", None)
            call_id = getattr(call, "id", None) or (call.get("id") if isinstance(call, dict) else None) or self._new_call_id()
            # Some servers prefix the namespace, e.g. "functions.search"
            name = raw_name.split(".")[-1] if "." in raw_name else raw_name
            args = self._parse_args_safely(raw_args)
            raw_text = raw_args if isinstance(raw_args, str) else json.dumps(args, ensure_ascii=False)
            out.append((ToolCallRequest.from_mapping(call_id, name, args), raw_text))
        return out

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _build_payload(self, thread: ThreadState) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": thread.instructions}, *thread.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        tools = self._build_openai_tools(thread.tools)
        if tools:
            payload["tools"] = tools
        return payload

    async def _create_completion(self, payload: Dict[str, Any]) -> Any:
        try:
            response = await self.client.chat.completions.create(**payload)
        except OpenAIError as e:
            raise ProviderError(f"{self.provider_name} request failed: {e}", provider=self.provider_name) from e
        self._record_usage(getattr(response, "usage", None))
        if not getattr(response, "choices", None):
            raise ProviderError(f"{self.provider_name} returned no choices", provider=self.provider_name)
        return response.choices[0].message

    async def _complete(self, thread: ThreadState) -> TurnResult:
        message = await self._create_completion(self._build_payload(thread))
        content = getattr(message, "content", None) or ""

        adapted = self._adapt_openai_tool_calls(getattr(message, "tool_calls", None))
        if not adapted:
            return FinalMessage(content=content)

        thread.messages.append(
            {
                "role": "assistant",
                "content": content or None,
                "tool_calls": [
                    {
                        "id": request.id,
                        "type": "function",
                        "function": {"name": request.name, "arguments": raw_text},
                    }
                    for request, raw_text in adapted
                ],
            }
        )
        if content:
            thread.history.append(ChatMessage(role="assistant", content=content))
        return ToolCallBatch(calls=[request for request, _ in adapted])


__all__ = ["OpenAIChatProvider"]
