"""
POCO DTO for a single iteration of the conversation loop. No framework dependencies.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

@dataclass
class AgentTurn:
    iteration: int
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)   # {"id": str, "name": str, "arguments": dict}
    tool_results: Dict[str, str] = field(default_factory=dict)       # call id -> delivered content
    response: Optional[str] = None

__all__ = ["AgentTurn"]
