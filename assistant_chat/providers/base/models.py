"""
Provider-agnostic domain models (DTOs) for the providers layer.

These dataclasses are the normalized contract between the conversation loop
and provider adapters. Adapters convert SDK objects into these DTOs and never
leak SDK types upstream.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Literal, Optional, Tuple, Union


# Message roles used across providers.
Role = Literal["system", "user", "assistant", "tool"]


@dataclass
class ChatMessage:
    """
    A message appended to a conversation thread.

    Tool results use role="tool" and carry the id of the call they answer.
    """
    role: Role
    content: str
    call_id: Optional[str] = None
    is_error: bool = False
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ToolCallArgument:
    name: str
    value: Any


@dataclass
class ToolCallRequest:
    """One call the model asked for: an opaque id, a tool name and named arguments in order."""
    id: str
    name: str
    arguments: List[ToolCallArgument] = field(default_factory=list)

    def arguments_dict(self) -> Dict[str, Any]:
        return {a.name: a.value for a in self.arguments}

    @classmethod
    def from_mapping(cls, call_id: str, name: str, arguments: Dict[str, Any]) -> "ToolCallRequest":
        return cls(
            id=call_id,
            name=name,
            arguments=[ToolCallArgument(name=k, value=v) for k, v in (arguments or {}).items()],
        )


@dataclass
class ToolCallBatch:
    calls: List[ToolCallRequest] = field(default_factory=list)


@dataclass
class FinalMessage:
    content: str
    role: Role = "assistant"


TurnResult = Union[FinalMessage, ToolCallBatch]

# Inclusive (from, to) range of unix timestamps; either bound may be None.
TimeRange = Tuple[Optional[float], Optional[float]]


@dataclass
class TokenUsage:
    """Token counters accumulated across every request made for a thread."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    requests: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def add(self, prompt_tokens: Optional[int], completion_tokens: Optional[int]) -> None:
        self.prompt_tokens += int(prompt_tokens or 0)
        self.completion_tokens += int(completion_tokens or 0)
        self.requests += 1

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["total_tokens"] = self.total_tokens
        return data


__all__ = [
    "Role",
    "ChatMessage",
    "ToolCallArgument",
    "ToolCallRequest",
    "ToolCallBatch",
    "FinalMessage",
    "TurnResult",
    "TimeRange",
    "TokenUsage",
]
