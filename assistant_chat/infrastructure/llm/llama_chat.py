"""
Llama chat provider using the TARGET text protocol.

Llama models served through Ollama, llama.cpp or Groq often expose an
OpenAI-compatible endpoint without reliable native tool calling. This provider
describes the callables in the system prompt and parses the reply:

    TARGET system
    searchHistory("invoice", 0, 0)

Results go back as a user message starting with `RESULT` or `ERROR`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from assistant_chat.abstractions.dto.tools import ToolDescriptor
from assistant_chat.domain.exceptions import CallParseError
from assistant_chat.infrastructure.config import ProviderSettings
from assistant_chat.providers.base.models import (
    ChatMessage,
    FinalMessage,
    ToolCallArgument,
    ToolCallBatch,
    ToolCallRequest,
    TurnResult,
)
from .base import ThreadState
from .openai_compatible import OpenAIChatProvider
from .text_protocol import ParsedCall, parse_call_expression, split_preamble_target_body, unwrap_fence

logger = logging.getLogger(__name__)

_ERROR_PREFIX = "ERROR: "


class LlamaChatProvider(OpenAIChatProvider):
    """
    Text-protocol provider over any OpenAI-compatible chat endpoint.

    Example for a local Ollama:
        provider = LlamaChatProvider(
            base_url="http://localhost:11434/v1",
            model="llama3.1",
        )
    """

    provider_name = "llama"

    @classmethod
    def _default_settings(cls) -> ProviderSettings:
        return ProviderSettings.for_provider("llama")

    # ------------------------------------------------------------------
    # Prompt
    # ------------------------------------------------------------------

    def _signature(self, tool: ToolDescriptor) -> str:
        params = []
        for p in tool.parameters:
            text = f"{p.name}: {p.type}"
            if p.default is not None:
                text += f" = {p.default}"
            params.append(text)
        return f"{tool.name}({', '.join(params)})"

    def _create_system_prompt(self, thread: ThreadState) -> str:
        """
        Build the system prompt that lists callables by signature and
        explains the TARGET system / TARGET user reply format.
        """
        methods = "\n".join(f"- {self._signature(t)} - {t.description}" for t in thread.tools) or "- (none)"
        return (
            "You are an assistant. Your role is described below. You can use the following methods "
            "to complete your tasks. Always respond as described:\n\n"
            "- To call a system method:\n"
            "  Start your response with the line `TARGET system`, followed by the method call on the next line "
            "in the format `methodName(param1, param2, ...)`. Arguments are JSON values in the declared order; "
            "a multi-line string may be wrapped in backticks instead of quotes. The result will be returned to you "
            "in the next message with the first line `RESULT`; on failure the first line is `ERROR` followed by "
            "a description.\n\n"
            "- To respond to the user:\n"
            "  Start your response with the line `TARGET user`, followed by your message on the next lines.\n\n"
            "This is the list of methods you can call:\n"
            "```markdown\n"
            f"{methods}\n"
            "```\n\n"
            "Example:\n"
            "```\n"
            "TARGET system\n"
            'searchHistory("invoice", 0, 0)\n'
            "```\n\n"
            "Your role is described here:\n"
            f"{thread.instructions}"
        )

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def _to_native(self, thread: ThreadState, message: ChatMessage) -> None:
        if message.role == "tool":
            if message.is_error:
                content = message.content
                if content.startswith(_ERROR_PREFIX):
                    content = content[len(_ERROR_PREFIX):]
                text = f"ERROR\n{content}"
            else:
                text = f"RESULT\n{message.content}"
            thread.messages.append({"role": "user", "content": text})
        elif message.role == "assistant":
            # Keep the model's own replies in protocol form
            thread.messages.append({"role": "assistant", "content": f"TARGET user\n{message.content}"})
        else:
            thread.messages.append({"role": message.role, "content": message.content})

    def _to_request(self, thread: ThreadState, parsed: ParsedCall) -> ToolCallRequest:
        """Name positional arguments after the declared parameters of the called tool."""
        tool = thread.tool(parsed.name)
        names: List[str] = [p.name for p in tool.parameters] if tool else []
        arguments = [
            ToolCallArgument(name=names[i] if i < len(names) else f"arg{i}", value=value)
            for i, value in enumerate(parsed.arguments)
        ]
        return ToolCallRequest(id=self._new_call_id(), name=parsed.name, arguments=arguments)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _build_payload(self, thread: ThreadState) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "system", "content": self._create_system_prompt(thread)}, *thread.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def _complete(self, thread: ThreadState) -> TurnResult:
        message = await self._create_completion(self._build_payload(thread))
        content = getattr(message, "content", None) or ""
        parts = split_preamble_target_body(content)

        if parts.target != "system":
            if parts.target not in (None, "user"):
                logger.warning("llama: unknown target '%s', treating reply as the answer", parts.target)
            return FinalMessage(content=unwrap_fence(parts.body) or "")

        thread.messages.append({"role": "assistant", "content": content})
        thread.history.append(ChatMessage(role="assistant", content=content))
        try:
            parsed = parse_call_expression(unwrap_fence(parts.body) or "")
        except CallParseError as e:
            logger.warning("llama: could not parse call: %s", e)
            feedback = f"ERROR\nThere was some error when parsing the method call from your response. {e}"
            thread.messages.append({"role": "user", "content": feedback})
            thread.history.append(ChatMessage(role="user", content=feedback))
            return ToolCallBatch(calls=[])

        return ToolCallBatch(calls=[self._to_request(thread, parsed)])


__all__ = ["LlamaChatProvider"]
