"""
Knowledge agent backed by another Assistant.

Lets one assistant consult a second one (with its own instructions, provider
and tools) through the `askKnowledgeAgent` callable.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .assistant import Assistant

logger = logging.getLogger(__name__)


class AssistantKnowledgeAgent:
    def __init__(self, assistant: "Assistant", iteration_limit: Optional[int] = None) -> None:
        self.assistant = assistant
        self.iteration_limit = iteration_limit

    async def initialize(self) -> None:
        await self.assistant.initialize()

    async def prompt(self, prompt: str) -> str:
        logger.debug("Knowledge agent asked: %s", prompt)
        return await self.assistant.prompt(prompt, self.iteration_limit)


__all__ = ["AssistantKnowledgeAgent"]
