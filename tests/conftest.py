"""
Shared test fixtures and utilities.

Provides a scripted in-memory ChatProvider so the conversation loop can be
tested without any LLM service, plus small builders for provider results.
"""

import inspect
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import pytest
from dotenv import load_dotenv

# Ensure project root is on sys.path so 'assistant_chat' imports resolve in tests
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

# Load environment variables
load_dotenv()

from assistant_chat.infrastructure.llm.base import BaseChatProvider, ThreadState  # noqa: E402
from assistant_chat.infrastructure.tools.tool_base import ToolSet  # noqa: E402
from assistant_chat.providers.base.models import (  # noqa: E402
    ChatMessage,
    FinalMessage,
    ToolCallArgument,
    ToolCallBatch,
    ToolCallRequest,
)

Step = Union[FinalMessage, ToolCallBatch, Callable[[ThreadState], Any]]


def final(text: str) -> FinalMessage:
    return FinalMessage(content=text)


def call(call_id: str, name: str, *args: Tuple[str, Any]) -> ToolCallRequest:
    """call("c1", "add", ("a", 1), ("b", 2))"""
    return ToolCallRequest(id=call_id, name=name, arguments=[ToolCallArgument(n, v) for n, v in args])


def batch(*calls: ToolCallRequest) -> ToolCallBatch:
    return ToolCallBatch(calls=list(calls))


class ScriptedProvider(BaseChatProvider):
    """
    Provider replaying a fixed script of turn results.

    A step may be a result or a callable taking the thread; a callable may
    return an awaitable, which lets a test hold a turn open.
    """

    provider_name = "scripted"

    def __init__(self, script: Sequence[Step] = (), default: Optional[Step] = None) -> None:
        super().__init__()
        self.script: List[Step] = list(script)
        self.default = default
        self.turns = 0
        self.created: List[Dict[str, Any]] = []

    async def create_thread(self, instructions, tools=None):
        thread_id = await super().create_thread(instructions, tools)
        self.created.append({"id": thread_id, "instructions": instructions, "tools": list(tools or [])})
        return thread_id

    def _to_native(self, thread: ThreadState, message: ChatMessage) -> None:
        thread.messages.append({"role": message.role, "content": message.content, "call_id": message.call_id})

    async def _complete(self, thread: ThreadState):
        self.turns += 1
        if self.script:
            step = self.script.pop(0)
        elif self.default is not None:
            step = self.default
        else:
            raise AssertionError("ScriptedProvider ran out of steps")
        result = step(thread) if callable(step) else step
        if inspect.isawaitable(result):
            result = await result
        return result

    def tool_results(self, thread_id: str) -> List[ChatMessage]:
        return [m for m in self.get_messages(thread_id) if m.role == "tool"]


class Calculator(ToolSet):
    def __init__(self):
        super().__init__()
        self.calls: List[Tuple[str, tuple]] = []

    @ToolSet.callable("Add two numbers")
    async def add(self, a: int, b: int) -> str:
        self.calls.append(("add", (a, b)))
        return str(a + b)

    @ToolSet.callable("Describe a value", parameters=[{"name": "label", "type": "string"}, {"name": "value", "type": "number"}])
    async def describe(self, label, value):
        self.calls.append(("describe", (label, value)))
        return f"{label}={value}"

    @ToolSet.callable("Always fails")
    async def explode(self, reason: str) -> str:
        raise RuntimeError(reason)


@pytest.fixture
def calculator():
    return Calculator()


@pytest.fixture
def scripted():
    """Factory for ScriptedProvider instances."""
    def _make(*steps: Step, default: Optional[Step] = None) -> ScriptedProvider:
        return ScriptedProvider(steps, default=default)
    return _make
