"""
Exception hierarchy for the assistant-chat core.

Only AssistantBusyError, TooManyAttemptsError and ProviderError are expected to
reach application code. Parse and dispatch errors are turned into tool results
inside the conversation loop so the model can correct itself.
"""
from __future__ import annotations

from typing import Optional


class AssistantChatError(Exception):
    """Base class for every error raised by this package."""


class AssistantBusyError(AssistantChatError):
    """A prompt is already in flight on this assistant."""

    def __init__(self, message: str = "Assistant is busy with another prompt") -> None:
        super().__init__(message)


class TooManyAttemptsError(AssistantChatError):
    """The iteration budget ran out before the model produced a final answer."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Too many attempts: no final answer after {limit} iterations")


class CallParseError(AssistantChatError):
    """Base for failures of the call-text protocol parser."""


class InvalidCallSyntaxError(CallParseError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Invalid method call syntax: {text}")


class ArgumentDecodeError(CallParseError):
    """The argument list of a call expression is not valid JSON."""

    def __init__(self, reason: str, arguments: str = "") -> None:
        self.reason = reason
        self.arguments = arguments
        super().__init__(f"Unable to decode arguments: {reason}")


class ToolDefinitionError(AssistantChatError):
    """A callable was registered with metadata that cannot be used."""


class UnsupportedParameterTypeError(ToolDefinitionError):
    def __init__(self, callable_name: str, parameter: str, type_name: str) -> None:
        self.callable_name = callable_name
        self.parameter = parameter
        self.type_name = type_name
        super().__init__(
            f"Parameter '{parameter}' of '{callable_name}' has unsupported type "
            f"'{type_name}' (expected string, number or boolean)"
        )


class ToolInvocationError(AssistantChatError):
    """Dispatching a single tool call failed; reported back as that call's error."""

    def __init__(self, message: str, tool_name: Optional[str] = None) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class ProviderError(AssistantChatError):
    """The LLM provider failed to serve a request."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        self.provider = provider
        super().__init__(message)


class ThreadNotFoundError(ProviderError):
    def __init__(self, thread_id: str) -> None:
        self.thread_id = thread_id
        super().__init__(f"Thread '{thread_id}' does not exist")


class PendingToolCallsError(ProviderError):
    """A user message was sent while tool results are still outstanding."""

    def __init__(self, thread_id: str, pending: int) -> None:
        self.thread_id = thread_id
        self.pending = pending
        super().__init__(
            f"Thread '{thread_id}' has {pending} unanswered tool call(s); "
            "user messages are not accepted until they are resolved"
        )


class ChatNotFoundError(AssistantChatError):
    def __init__(self, chat_id: str) -> None:
        self.chat_id = chat_id
        super().__init__(f"Chat '{chat_id}' not found")


__all__ = [
    "AssistantChatError",
    "AssistantBusyError",
    "TooManyAttemptsError",
    "CallParseError",
    "InvalidCallSyntaxError",
    "ArgumentDecodeError",
    "ToolDefinitionError",
    "UnsupportedParameterTypeError",
    "ToolInvocationError",
    "ProviderError",
    "ThreadNotFoundError",
    "PendingToolCallsError",
    "ChatNotFoundError",
]
