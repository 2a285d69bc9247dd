"""
POCO DTO for everything that happened during one prompt. No framework dependencies.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List
from assistant_chat.domain.entities.agent_turn import AgentTurn

@dataclass
class AgentTranscript:
    prompt: str = ""
    turns: List[AgentTurn] = field(default_factory=list)
    final_response: str = ""
    used_tools: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def iterations(self) -> int:
        return len(self.turns)

    def calls(self) -> Iterator[Dict[str, Any]]:
        """Every tool call of the prompt, in issue order."""
        for turn in self.turns:
            yield from turn.tool_calls

__all__ = ["AgentTranscript"]
