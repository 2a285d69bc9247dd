"""
Tool catalog base.

Host classes derive from ToolSet and mark coroutine methods with
@ToolSet.callable(...). Metadata is collected when the class is defined, so a
bad declaration (e.g. a list parameter) fails at import time rather than in the
middle of a conversation.

    class Weather(ToolSet):
        @ToolSet.callable("Current temperature for a city")
        async def temperature(self, city: str, celsius: bool = True) -> str:
            ...

Only string, number and boolean parameters are accepted. Declared defaults are
recorded as text for the model's benefit and never applied at dispatch time.
"""

from __future__ import annotations

import inspect
import logging
import typing
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from assistant_chat.abstractions.dto.tools import (
    SUPPORTED_PARAMETER_TYPES,
    CallableDescriptor,
    CallableParameter,
)
from assistant_chat.domain.exceptions import ToolDefinitionError, UnsupportedParameterTypeError
from .catalog_adapter import ToolCatalogView

logger = logging.getLogger(__name__)

_CALLABLE_ATTR = "__assistant_callable__"

_TYPE_MAP: Dict[Any, str] = {str: "string", int: "number", float: "number", bool: "boolean"}
_TYPE_NAME_MAP: Dict[str, str] = {"str": "string", "int": "number", "float": "number", "bool": "boolean"}

ParameterSpec = Union[CallableParameter, Mapping[str, Any]]


def _type_label(annotation: Any) -> str:
    if isinstance(annotation, str):
        return annotation
    return getattr(annotation, "__name__", None) or repr(annotation)


def _map_type(annotation: Any) -> Optional[str]:
    if isinstance(annotation, str):
        if annotation in SUPPORTED_PARAMETER_TYPES:
            return annotation
        return _TYPE_NAME_MAP.get(annotation.strip())
    try:
        return _TYPE_MAP.get(annotation)
    except TypeError:  # unhashable annotation
        return None


def _resolve_hints(func: Callable[..., Any]) -> Dict[str, Any]:
    # String annotations (PEP 563) are resolved when possible; unresolved names
    # fall back to their raw text, which _map_type understands for builtins.
    try:
        return typing.get_type_hints(func)
    except (NameError, TypeError):
        return dict(getattr(func, "__annotations__", {}) or {})


def _introspect_parameters(
    func: Callable[..., Any], callable_name: str, skip_receiver: bool
) -> Tuple[CallableParameter, ...]:
    signature = inspect.signature(func)
    hints = _resolve_hints(func)
    params: List[CallableParameter] = []

    items = list(signature.parameters.values())
    if skip_receiver and items:
        items = items[1:]

    for p in items:
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise UnsupportedParameterTypeError(callable_name, p.name, "*args" if p.kind == p.VAR_POSITIONAL else "**kwargs")
        if p.kind == inspect.Parameter.KEYWORD_ONLY:
            raise ToolDefinitionError(
                f"Parameter '{p.name}' of '{callable_name}' is keyword-only; callables receive positional arguments"
            )

        has_default = p.default is not inspect.Parameter.empty
        annotation = hints.get(p.name, inspect.Parameter.empty)
        if annotation is inspect.Parameter.empty:
            if not has_default:
                raise UnsupportedParameterTypeError(callable_name, p.name, "unannotated")
            annotation = type(p.default)

        type_name = _map_type(annotation)
        if type_name is None:
            raise UnsupportedParameterTypeError(callable_name, p.name, _type_label(annotation))

        params.append(
            CallableParameter(
                name=p.name,
                type=type_name,  # type: ignore[arg-type]
                default=repr(p.default) if has_default else None,
            )
        )
    return tuple(params)


def _normalize_parameters(parameters: Sequence[ParameterSpec], callable_name: str) -> Tuple[CallableParameter, ...]:
    """Validate an explicit parameter list given to the decorator."""
    out: List[CallableParameter] = []
    seen = set()
    for spec in parameters:
        if isinstance(spec, CallableParameter):
            name, type_name, default = spec.name, spec.type, spec.default
        else:
            try:
                name = spec["name"]
            except KeyError:
                raise ToolDefinitionError(f"Parameter of '{callable_name}' is missing a name") from None
            type_name = spec.get("type", "string")
            default = spec.get("default")
            if default is not None and not isinstance(default, str):
                default = repr(default)

        mapped = _map_type(type_name)
        if mapped is None:
            raise UnsupportedParameterTypeError(callable_name, name, _type_label(type_name))
        if name in seen:
            raise ToolDefinitionError(f"Duplicate parameter '{name}' in '{callable_name}'")
        seen.add(name)
        out.append(CallableParameter(name=name, type=mapped, default=default))  # type: ignore[arg-type]
    return tuple(out)


def build_descriptor(
    func: Callable[..., Any],
    description: str,
    name: Optional[str] = None,
    parameters: Optional[Sequence[ParameterSpec]] = None,
    skip_receiver: bool = True,
) -> CallableDescriptor:
    """
    Build the descriptor for one callable.

    Args:
        func: Coroutine function implementing the callable
        description: Text shown to the model
        name: Exposed name (defaults to the function name)
        parameters: Explicit parameter metadata overriding introspection
        skip_receiver: Drop the first positional parameter (``self``)

    Raises:
        ToolDefinitionError: func is not a coroutine function or metadata is invalid
        UnsupportedParameterTypeError: a parameter is not string, number or boolean
    """
    callable_name = name or getattr(func, "__name__", "")
    if not callable_name:
        raise ToolDefinitionError("Callable has no name")
    if not inspect.iscoroutinefunction(func):
        raise ToolDefinitionError(f"Callable '{callable_name}' must be an async function")

    if parameters is not None:
        params = _normalize_parameters(parameters, callable_name)
    else:
        params = _introspect_parameters(func, callable_name, skip_receiver)

    return CallableDescriptor(name=callable_name, description=description, parameters=params, function=func)


class ToolSet:
    """
    Base class for anything that exposes callables to the model.

    Catalog sources, highest precedence first:
    - own: methods decorated with @ToolSet.callable on this class or its bases
    - additional: descriptors added at runtime via add_callable()
    - nested: callables of embedded ToolSet instances, bound to those children
    """

    _callables: ClassVar[Dict[str, CallableDescriptor]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        by_attr: Dict[str, CallableDescriptor] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                descriptor = getattr(value, _CALLABLE_ATTR, None)
                if isinstance(descriptor, CallableDescriptor):
                    by_attr[attr] = descriptor
                else:
                    # Overridden without the decorator
                    by_attr.pop(attr, None)
        cls._callables = {d.name: d for d in by_attr.values()}

    def __init__(self, nested: Optional[Iterable["ToolSet"]] = None) -> None:
        self._nested: List[ToolSet] = list(nested or [])
        self._additional: Dict[str, CallableDescriptor] = {}

    @staticmethod
    def callable(
        description: str,
        name: Optional[str] = None,
        parameters: Optional[Sequence[ParameterSpec]] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Mark an async method as callable by the model."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            descriptor = build_descriptor(func, description, name=name, parameters=parameters)
            setattr(func, _CALLABLE_ATTR, descriptor)
            return func

        return decorator

    @classmethod
    def declared_callables(cls) -> Dict[str, CallableDescriptor]:
        """Unbound descriptors registered on the class."""
        return dict(cls._callables)

    def add_nested(self, toolset: "ToolSet") -> None:
        if toolset is self:
            raise ToolDefinitionError("A ToolSet cannot nest itself")
        self._nested_toolsets().append(toolset)

    def add_callable(
        self,
        func: Callable[..., Any],
        description: str,
        name: Optional[str] = None,
        parameters: Optional[Sequence[ParameterSpec]] = None,
    ) -> CallableDescriptor:
        """Register an additional callable (a bound method or plain coroutine function)."""
        descriptor = build_descriptor(func, description, name=name, parameters=parameters, skip_receiver=False)
        self._additional_callables()[descriptor.name] = descriptor
        return descriptor

    def remove_callable(self, name: str) -> None:
        self._additional_callables().pop(name, None)

    def catalog(self) -> ToolCatalogView:
        """Merged, instance-bound view of every callable reachable from this ToolSet."""
        merged: Dict[str, CallableDescriptor] = {}
        origin: Dict[str, str] = {}

        def put(descriptor: CallableDescriptor, source: str) -> None:
            if descriptor.name in merged:
                logger.warning(
                    "Callable '%s' from %s shadows the %s one on %s",
                    descriptor.name, source, origin[descriptor.name], type(self).__name__,
                )
            merged[descriptor.name] = descriptor
            origin[descriptor.name] = source

        for child in self._nested_toolsets():
            for descriptor in child.catalog().values():
                put(descriptor, "nested")
        for descriptor in self._additional_callables().values():
            put(descriptor, "additional")
        for descriptor in type(self)._callables.values():
            put(descriptor.bind(self), "own")

        return ToolCatalogView(merged)

    def _nested_toolsets(self) -> List["ToolSet"]:
        # Subclasses may skip ToolSet.__init__
        if "_nested" not in self.__dict__:
            self._nested = []
        return self._nested

    def _additional_callables(self) -> Dict[str, CallableDescriptor]:
        if "_additional" not in self.__dict__:
            self._additional = {}
        return self._additional


__all__ = ["ToolSet", "build_descriptor"]
