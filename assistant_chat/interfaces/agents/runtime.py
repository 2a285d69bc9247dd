"""
Assistant runtime port (contract only). No implementations here.
Clean Architecture: Presentation → (IAssistantRuntime) → BL, infra implements ports.
"""

from __future__ import annotations

from typing import Optional, Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from assistant_chat.domain.entities.agent_transcript import AgentTranscript
    from assistant_chat.infrastructure.tools.catalog_adapter import ToolCatalogView


@runtime_checkable
class IAssistantRuntime(Protocol):
    @property
    def busy(self) -> bool:
        ...

    @property
    def transcript(self) -> Optional["AgentTranscript"]:
        ...

    async def prompt(self, input: str, iteration_limit: Optional[int] = None, force: bool = False) -> str:
        ...

    def cancel(self) -> None:
        ...

    def get_callables(self) -> "ToolCatalogView":
        ...


__all__ = ["IAssistantRuntime"]
