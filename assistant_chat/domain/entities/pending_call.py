"""
Bookkeeping entities for the conversation loop: outstanding tool calls and
the single-writer lock of an assistant instance.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PendingCall:
    id: str
    tool_name: str
    epoch: int


@dataclass
class ConversationLock:
    busy: bool = False
    cancel_requested: bool = False
    # Bumped by a forced prompt; a loop holding an older value is stale.
    epoch: int = 0

    def acquire(self) -> int:
        self.busy = True
        self.cancel_requested = False
        return self.epoch

    def release(self) -> None:
        self.busy = False

    def supersede(self) -> int:
        self.epoch += 1
        self.busy = False
        return self.epoch

    def is_stale(self, epoch: int) -> bool:
        return epoch != self.epoch


__all__ = ["PendingCall", "ConversationLock"]
