"""
Thread-keeping base for chat providers.

Concrete adapters (OpenAI, Anthropic, Llama text protocol) only translate
messages to their wire format and run one completion; everything else a
ChatProvider has to do lives here:
- In-memory threads with the provider-native message list and a full history
- Tracking of tool calls the model issued but nobody answered yet
- Rejecting user messages while such calls are outstanding
- History search by text and time range
- Token usage accounting
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from assistant_chat.abstractions.dto.tools import ToolDescriptor
from assistant_chat.domain.exceptions import PendingToolCallsError, ThreadNotFoundError
from assistant_chat.providers.base.models import (
    ChatMessage,
    TimeRange,
    TokenUsage,
    ToolCallBatch,
    TurnResult,
)

logger = logging.getLogger(__name__)

NOTHING_FOUND = "Nothing was found in the history."


@dataclass
class ThreadState:
    instructions: str
    tools: List[ToolDescriptor] = field(default_factory=list)
    # Provider-native messages sent with every completion
    messages: List[Dict[str, Any]] = field(default_factory=list)
    # Everything added to the thread, kept for search
    history: List[ChatMessage] = field(default_factory=list)
    # Unanswered tool call ids, in issue order
    pending: List[str] = field(default_factory=list)

    def tool(self, name: str) -> Optional[ToolDescriptor]:
        for t in self.tools:
            if t.name == name:
                return t
        return None


class BaseChatProvider(ABC):
    """
    Abstract base implementing the ChatProvider contract around two hooks:

    - _to_native(thread, message): append a ChatMessage in wire format
    - _complete(thread): run one completion and normalize its outcome
    """

    provider_name: str = "base"

    def __init__(self) -> None:
        self.threads: Dict[str, ThreadState] = {}
        self._usage = TokenUsage()

    # ------------------------------------------------------------------
    # ChatProvider
    # ------------------------------------------------------------------

    async def create_thread(self, instructions: str, tools: Optional[List[ToolDescriptor]] = None) -> str:
        thread_id = uuid.uuid4().hex
        self.threads[thread_id] = ThreadState(instructions=instructions, tools=list(tools or []))
        logger.info("%s: created thread %s with %d tool(s)", self.provider_name, thread_id, len(tools or []))
        return thread_id

    async def add_message(self, thread_id: str, message: ChatMessage) -> None:
        thread = self._thread(thread_id)
        if message.role == "user" and thread.pending:
            raise PendingToolCallsError(thread_id, len(thread.pending))
        if message.role == "tool":
            if message.call_id in thread.pending:
                thread.pending.remove(message.call_id)
            else:
                logger.warning("%s: result for unknown call %s on thread %s", self.provider_name, message.call_id, thread_id)
        thread.history.append(message)
        self._to_native(thread, message)

    async def execute_turn(self, thread_id: str) -> TurnResult:
        thread = self._thread(thread_id)
        result = await self._complete(thread)
        if isinstance(result, ToolCallBatch):
            thread.pending.extend(call.id for call in result.calls)
            logger.debug("%s: thread %s issued %d call(s)", self.provider_name, thread_id, len(result.calls))
        return result

    async def remove_thread(self, thread_id: str) -> None:
        self._thread(thread_id)
        del self.threads[thread_id]
        logger.info("%s: removed thread %s", self.provider_name, thread_id)

    async def search_history(
        self,
        thread_id: str,
        text: Optional[str] = None,
        time_range: Optional[TimeRange] = None,
    ) -> str:
        thread = self._thread(thread_id)
        found = [m for m in thread.history if m.content]
        if text:
            needle = text.lower()
            found = [m for m in found if needle in m.content.lower()]
        if time_range is not None:
            start, end = time_range
            found = [
                m for m in found
                if (start is None or m.timestamp >= start) and (end is None or m.timestamp <= end)
            ]
        if not found:
            return NOTHING_FOUND
        return "\n".join(f"{m.role}: {m.content}" for m in found)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def get_messages(self, thread_id: str) -> List[ChatMessage]:
        """Full history of the thread."""
        return list(self._thread(thread_id).history)

    def pending_calls(self, thread_id: str) -> Tuple[str, ...]:
        return tuple(self._thread(thread_id).pending)

    @property
    def usage(self) -> TokenUsage:
        """Tokens used by every completion this provider ran."""
        return self._usage

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------

    def _thread(self, thread_id: str) -> ThreadState:
        try:
            return self.threads[thread_id]
        except KeyError:
            raise ThreadNotFoundError(thread_id) from None

    @staticmethod
    def _new_call_id() -> str:
        return f"call_{uuid.uuid4().hex[:12]}"

    def _record_usage(self, usage: Any) -> None:
        """Accumulate an SDK usage object (OpenAI or Anthropic field names)."""
        if usage is None:
            self._usage.add(0, 0)
            return
        prompt = getattr(usage, "prompt_tokens", None)
        if prompt is None:
            prompt = getattr(usage, "input_tokens", None)
        completion = getattr(usage, "completion_tokens", None)
        if completion is None:
            completion = getattr(usage, "output_tokens", None)
        self._usage.add(prompt, completion)

    @abstractmethod
    def _to_native(self, thread: ThreadState, message: ChatMessage) -> None:
        """Append the message to thread.messages in the provider's wire format."""
        raise NotImplementedError

    @abstractmethod
    async def _complete(self, thread: ThreadState) -> TurnResult:
        """
        Run one completion over the thread.

        Implementations record assistant tool-call messages in thread.messages
        themselves; final answers are delivered back through add_message().
        """
        raise NotImplementedError


__all__ = ["BaseChatProvider", "ThreadState", "NOTHING_FOUND"]
