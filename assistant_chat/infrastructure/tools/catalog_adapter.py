"""
Tool catalog view implementing the IToolCatalog interface.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from assistant_chat.abstractions.dto.tools import CallableDescriptor, ToolDescriptor


class ToolCatalogView(Mapping[str, CallableDescriptor]):
    """
    Read-only, instance-bound mapping of callable name to descriptor.

    Built by ToolSet.catalog(); safe to share between readers.
    """

    def __init__(self, descriptors: Mapping[str, CallableDescriptor]) -> None:
        self._descriptors = MappingProxyType(dict(descriptors))

    def __getitem__(self, name: str) -> CallableDescriptor:
        return self._descriptors[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self) -> str:
        return f"ToolCatalogView({sorted(self._descriptors)})"

    def list_tools(self) -> List[ToolDescriptor]:
        """
        List all callables as ToolDescriptor objects, in catalog order.
        """
        return [d.to_tool_descriptor() for d in self._descriptors.values()]

    def get_tool(self, name: str) -> Optional[ToolDescriptor]:
        """
        Get a tool descriptor by name.
        """
        descriptor = self._descriptors.get(name)
        return descriptor.to_tool_descriptor() if descriptor else None

    def schemas(self) -> Dict[str, Dict]:
        return {name: d.to_tool_descriptor().raw_schema for name, d in self._descriptors.items()}


__all__ = ["ToolCatalogView"]
