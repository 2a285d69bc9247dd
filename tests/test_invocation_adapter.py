import itertools

import pytest

from assistant_chat.abstractions.dto.tools import CallableParameter
from assistant_chat.domain.exceptions import ToolInvocationError
from assistant_chat.infrastructure.tools.invocation_adapter import (
    NOT_CALLABLE_RESULT,
    ToolInvocationAdapter,
    bind_arguments,
    serialize_result,
)
from assistant_chat.infrastructure.tools.tool_base import ToolSet
from assistant_chat.interfaces.services.tools import IToolCatalog, IToolInvocationAdapter


class Recorder(ToolSet):
    def __init__(self):
        super().__init__()
        self.received = []

    @ToolSet.callable("Record three values")
    async def record(self, first: str, second: int, third: bool) -> str:
        self.received.append((first, second, third))
        return "recorded"

    @ToolSet.callable("Return structured data")
    async def data(self) -> dict:
        return {"ok": True, "items": [1, 2]}

    @ToolSet.callable("Return nothing")
    async def nothing(self) -> None:
        return None


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def adapter(recorder):
    return ToolInvocationAdapter(recorder.catalog())


class TestDispatch:
    @pytest.mark.parametrize(
        "order",
        list(itertools.permutations([("first", "a"), ("second", 2), ("third", True)])),
    )
    async def test_any_argument_order_is_bound_by_name(self, adapter, recorder, order):
        result = await adapter.execute("record", dict(order), call_id="c1")
        assert result.ok
        assert result.value == "recorded"
        assert recorder.received == [("a", 2, True)]

    async def test_unknown_callable_is_not_an_error(self, adapter):
        result = await adapter.execute("missing", {"x": 1})
        assert result.ok
        assert result.content == NOT_CALLABLE_RESULT == "Not implemented or not callable"

    async def test_unknown_argument_is_an_error_result(self, adapter, recorder):
        result = await adapter.execute("record", {"first": "a", "second": 2, "third": True, "fourth": 4}, call_id="c9")
        assert not result.ok
        assert result.error == "Parameter fourth not found in method record"
        assert result.content.startswith("ERROR: ")
        assert result.call_id == "c9"
        assert recorder.received == []

    async def test_missing_argument_is_an_error_result(self, adapter):
        result = await adapter.execute("record", {"first": "a", "third": False})
        assert not result.ok
        assert "second" in result.error

    async def test_exception_in_callable_becomes_error_result(self, calculator):
        adapter = ToolInvocationAdapter(calculator.catalog())
        result = await adapter.execute("explode", {"reason": "boom"})
        assert not result.ok
        assert result.error == "RuntimeError: boom"

    async def test_results_are_serialized(self, adapter):
        assert (await adapter.execute("data", {})).value == '{"ok": true, "items": [1, 2]}'
        assert (await adapter.execute("nothing", {})).value == ""


class TestHelpers:
    def test_bind_arguments_orders_by_declaration(self, recorder):
        descriptor = recorder.catalog()["record"]
        assert bind_arguments(descriptor, {"third": False, "first": "x", "second": 1}) == ["x", 1, False]

    def test_bind_arguments_rejects_unknown_names(self, recorder):
        descriptor = recorder.catalog()["record"]
        with pytest.raises(ToolInvocationError):
            bind_arguments(descriptor, {"first": "x", "second": 1, "third": True, "extra": 0})

    def test_explicit_parameter_names_drive_binding(self, calculator):
        descriptor = calculator.catalog()["describe"]
        assert descriptor.parameters == (CallableParameter("label", "string"), CallableParameter("value", "number"))
        assert bind_arguments(descriptor, {"value": 3, "label": "n"}) == ["n", 3]

    @pytest.mark.parametrize("value,expected", [("text", "text"), (None, ""), (3, "3"), ([1, "a"], '[1, "a"]')])
    def test_serialize_result(self, value, expected):
        assert serialize_result(value) == expected


class TestPorts:
    def test_adapters_satisfy_their_ports(self, recorder, adapter):
        assert isinstance(recorder.catalog(), IToolCatalog)
        assert isinstance(adapter, IToolInvocationAdapter)
