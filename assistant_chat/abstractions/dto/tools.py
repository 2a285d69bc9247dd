"""
Shared tool DTOs for catalogs and invocation results.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Sequence, Tuple

ParameterType = Literal["string", "number", "boolean"]

SUPPORTED_PARAMETER_TYPES: Tuple[str, ...] = ("string", "number", "boolean")


@dataclass(frozen=True)
class CallableParameter:
    name: str
    type: ParameterType
    # Source text of the declared default; documentation only, never applied.
    default: Optional[str] = None


@dataclass(frozen=True)
class CallableDescriptor:
    """
    A registered host procedure the model may call.

    `function` is the plain (unbound) coroutine function; `receiver` is the
    instance it runs against once the descriptor is bound to a catalog view.
    """
    name: str
    description: str
    parameters: Tuple[CallableParameter, ...]
    function: Callable[..., Awaitable[Any]] = field(compare=False, repr=False)
    receiver: Any = field(default=None, compare=False, repr=False)

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]

    def bind(self, receiver: Any) -> "CallableDescriptor":
        return replace(self, receiver=receiver)

    async def invoke(self, args: Sequence[Any]) -> Any:
        if self.receiver is None:
            return await self.function(*args)
        return await self.function(self.receiver, *args)

    def to_tool_descriptor(self) -> "ToolDescriptor":
        return ToolDescriptor(name=self.name, description=self.description, parameters=list(self.parameters))


@dataclass
class ToolDescriptor:
    name: str
    description: str
    parameters: List[CallableParameter] = field(default_factory=list)

    @property
    def raw_schema(self) -> Dict[str, Any]:
        """JSON schema of the arguments object.

        Every parameter is required: declared defaults are never applied, so
        they are only surfaced in the description.
        """
        properties: Dict[str, Any] = {}
        for p in self.parameters:
            prop: Dict[str, Any] = {"type": p.type}
            if p.default is not None:
                prop["description"] = f"Default: {p.default}"
            properties[p.name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [p.name for p in self.parameters],
        }


@dataclass
class ToolInvocationResult:
    ok: bool
    value: Optional[str]
    error: Optional[str]
    tool_name: str
    call_id: Optional[str] = None

    @property
    def content(self) -> str:
        """Text delivered back to the model for this call."""
        if self.ok:
            return self.value or ""
        return f"ERROR: {self.error}"


__all__ = [
    "ParameterType",
    "SUPPORTED_PARAMETER_TYPES",
    "CallableParameter",
    "CallableDescriptor",
    "ToolDescriptor",
    "ToolInvocationResult",
]
