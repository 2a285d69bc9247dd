"""
Tool invocation adapter implementing IToolInvocationAdapter interface.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Mapping, Optional

from assistant_chat.abstractions.dto.tools import CallableDescriptor, ToolInvocationResult
from assistant_chat.domain.exceptions import ToolInvocationError
from .catalog_adapter import ToolCatalogView

logger = logging.getLogger(__name__)

NOT_CALLABLE_RESULT = "Not implemented or not callable"


def bind_arguments(descriptor: CallableDescriptor, params: Mapping[str, Any]) -> List[Any]:
    """
    Order named arguments by the descriptor's declared parameter order.

    Raises:
        ToolInvocationError: an argument is not declared, or a declared one is missing
    """
    names = descriptor.parameter_names
    for arg_name in params:
        if arg_name not in names:
            raise ToolInvocationError(
                f"Parameter {arg_name} not found in method {descriptor.name}", tool_name=descriptor.name
            )
    missing = [n for n in names if n not in params]
    if missing:
        raise ToolInvocationError(
            f"Missing parameter(s) {', '.join(missing)} for method {descriptor.name}", tool_name=descriptor.name
        )
    return [params[n] for n in names]


def serialize_result(result: Any) -> str:
    if result is None:
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, (dict, list, tuple, bool, int, float)):
        return json.dumps(result, ensure_ascii=False)
    return str(result)


class ToolInvocationAdapter:
    """
    Dispatches tool calls against a catalog view.
    """

    def __init__(self, view: ToolCatalogView) -> None:
        self.view = view

    async def execute(self, name: str, params: Mapping[str, Any], call_id: Optional[str] = None) -> ToolInvocationResult:
        """
        Execute a callable by name with named arguments.

        Unknown names are not an error: the model is told the callable does not
        exist and may pick another one. Binding failures and exceptions raised
        by the callable become an error result for this call only.
        """
        descriptor = self.view.get(name)
        if descriptor is None:
            logger.debug("Call %s requested unknown callable '%s'", call_id, name)
            return ToolInvocationResult(ok=True, value=NOT_CALLABLE_RESULT, error=None, tool_name=name, call_id=call_id)

        try:
            args = bind_arguments(descriptor, params)
        except ToolInvocationError as e:
            logger.debug("Call %s to '%s' rejected: %s", call_id, name, e)
            return ToolInvocationResult(ok=False, value=None, error=str(e), tool_name=name, call_id=call_id)

        try:
            result = await descriptor.invoke(args)
        except Exception as e:
            logger.warning("Callable '%s' failed for call %s: %s", name, call_id, e, exc_info=True)
            return ToolInvocationResult(
                ok=False, value=None, error=f"{type(e).__name__}: {e}", tool_name=name, call_id=call_id
            )

        return ToolInvocationResult(ok=True, value=serialize_result(result), error=None, tool_name=name, call_id=call_id)


__all__ = ["ToolInvocationAdapter", "bind_arguments", "serialize_result", "NOT_CALLABLE_RESULT"]
