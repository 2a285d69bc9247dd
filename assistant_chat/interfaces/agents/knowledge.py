"""
Knowledge agent port: a secondary agent the assistant can ask questions,
typically one whose knowledge is maintained outside this process.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class IKnowledgeAgent(Protocol):
    async def initialize(self) -> None:
        ...

    async def prompt(self, prompt: str) -> str:
        ...


__all__ = ["IKnowledgeAgent"]
