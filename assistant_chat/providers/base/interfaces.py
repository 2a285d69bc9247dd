"""
Provider-agnostic interfaces (Protocols) for the providers layer.

ChatProvider is the boundary contract the conversation loop depends on. A
provider owns conversation threads: it stores messages, talks to the model and
normalizes each model turn into either a FinalMessage or a ToolCallBatch.

Related DTOs are defined in: assistant_chat/providers/base/models.py
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable, TYPE_CHECKING

from .models import ChatMessage, TimeRange, TurnResult

if TYPE_CHECKING:
    from assistant_chat.abstractions.dto.tools import ToolDescriptor


@runtime_checkable
class ChatProvider(Protocol):
    """
    Minimal interface for thread-based LLM providers.
    """

    @property
    def provider_name(self) -> str:
        """Canonical provider identifier, e.g., 'openai', 'anthropic'."""
        ...

    async def create_thread(self, instructions: str, tools: List["ToolDescriptor"]) -> str:
        """Create a conversation thread and return its id."""
        ...

    async def add_message(self, thread_id: str, message: ChatMessage) -> None:
        """
        Append a message to the thread.

        Must raise PendingToolCallsError for a user message while tool calls
        issued by the model are still unanswered.
        """
        ...

    async def execute_turn(self, thread_id: str) -> TurnResult:
        """Run the model once over the thread's current state."""
        ...

    async def remove_thread(self, thread_id: str) -> None:
        ...

    async def search_history(
        self,
        thread_id: str,
        text: Optional[str] = None,
        time_range: Optional[TimeRange] = None,
    ) -> str:
        """Return the matching part of the thread history as text."""
        ...


__all__ = ["ChatProvider"]
