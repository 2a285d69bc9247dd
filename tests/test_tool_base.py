import logging
from typing import List

import pytest

from assistant_chat.abstractions.dto.tools import CallableParameter
from assistant_chat.domain.exceptions import ToolDefinitionError, UnsupportedParameterTypeError
from assistant_chat.infrastructure.tools.tool_base import ToolSet


class Greeter(ToolSet):
    def __init__(self, greeting="Hello"):
        super().__init__()
        self.greeting = greeting

    @ToolSet.callable("Greet someone by name")
    async def greet(self, name: str) -> str:
        return f"{self.greeting}, {name}!"

    @ToolSet.callable("Repeat a word", name="repeatWord")
    async def repeat(self, word: str, times: int = 2, shout: bool = False) -> str:
        text = " ".join([word] * times)
        return text.upper() if shout else text


class LoudGreeter(Greeter):
    @ToolSet.callable("Greet someone loudly")
    async def greet(self, name: str) -> str:
        return f"{self.greeting.upper()}, {name.upper()}!"


class TestRegistration:
    def test_parameters_are_introspected_in_declared_order(self):
        descriptor = Greeter.declared_callables()["repeatWord"]
        assert descriptor.description == "Repeat a word"
        assert descriptor.parameters == (
            CallableParameter("word", "string"),
            CallableParameter("times", "number", "2"),
            CallableParameter("shout", "boolean", "False"),
        )

    def test_registry_is_per_class_and_inherited(self):
        assert set(Greeter.declared_callables()) == {"greet", "repeatWord"}
        assert set(LoudGreeter.declared_callables()) == {"greet", "repeatWord"}
        assert LoudGreeter.declared_callables()["greet"].description == "Greet someone loudly"
        assert Greeter.declared_callables()["greet"].description == "Greet someone by name"

    def test_explicit_parameters_override_introspection(self):
        class Explicit(ToolSet):
            @ToolSet.callable("Explicit", parameters=[CallableParameter("q", "string"), {"name": "n", "type": "number", "default": 3}])
            async def search(self, query, limit):
                return ""

        params = Explicit.declared_callables()["search"].parameters
        assert [(p.name, p.type, p.default) for p in params] == [("q", "string", None), ("n", "number", "3")]

    def test_unannotated_parameter_uses_default_type(self):
        class Untyped(ToolSet):
            @ToolSet.callable("Untyped with default")
            async def act(self, flag=True, label="x"):
                return ""

        params = Untyped.declared_callables()["act"].parameters
        assert [p.type for p in params] == ["boolean", "string"]

    @pytest.mark.parametrize("annotation", [list, dict, List[str], bytes, object])
    def test_unsupported_types_fail_at_definition_time(self, annotation):
        async def handler(self, value):
            return ""

        handler.__annotations__ = {"value": annotation}
        with pytest.raises(UnsupportedParameterTypeError) as excinfo:
            ToolSet.callable("bad")(handler)
        assert excinfo.value.parameter == "value"

    def test_unsupported_type_fails_while_defining_the_class(self):
        with pytest.raises(UnsupportedParameterTypeError):
            class Broken(ToolSet):
                @ToolSet.callable("Takes a list")
                async def take(self, items: list) -> str:
                    return ""

    def test_unannotated_parameter_without_default_is_rejected(self):
        with pytest.raises(UnsupportedParameterTypeError):
            class Broken(ToolSet):
                @ToolSet.callable("Untyped")
                async def take(self, thing):
                    return ""

    def test_variadic_parameters_are_rejected(self):
        with pytest.raises(UnsupportedParameterTypeError):
            class Broken(ToolSet):
                @ToolSet.callable("Variadic")
                async def take(self, *things: str):
                    return ""

    def test_explicit_unsupported_type_is_rejected(self):
        with pytest.raises(UnsupportedParameterTypeError):
            class Broken(ToolSet):
                @ToolSet.callable("Explicit", parameters=[{"name": "items", "type": "array"}])
                async def take(self, items):
                    return ""

    def test_sync_functions_are_rejected(self):
        with pytest.raises(ToolDefinitionError):
            class Broken(ToolSet):
                @ToolSet.callable("Sync")
                def take(self, value: str):
                    return ""


class TestCatalogView:
    async def test_own_callables_are_bound_to_the_instance(self):
        view = Greeter("Hi").catalog()
        assert await view["greet"].invoke(["Ada"]) == "Hi, Ada!"

    async def test_nested_callables_are_bound_to_the_child(self):
        child = Greeter("Ahoj")
        parent = ToolSet(nested=[child])
        view = parent.catalog()
        assert set(view) == {"greet", "repeatWord"}
        assert view["greet"].receiver is child
        assert await view["greet"].invoke(["Eva"]) == "Ahoj, Eva!"

    async def test_grandchildren_stay_bound_to_their_owner(self):
        grandchild = Greeter("Hey")
        child = ToolSet(nested=[grandchild])
        view = ToolSet(nested=[child]).catalog()
        assert view["greet"].receiver is grandchild

    async def test_override_order_own_over_additional_over_nested(self, caplog):
        class Host(ToolSet):
            @ToolSet.callable("Own greet")
            async def greet(self, name: str) -> str:
                return "own"

        async def additional_greet(name: str) -> str:
            return "additional"

        async def additional_only(name: str) -> str:
            return "additional only"

        host = Host(nested=[Greeter()])
        host.add_callable(additional_greet, "Additional greet", name="greet")
        host.add_callable(additional_only, "Also added", name="repeatWord", parameters=[{"name": "word", "type": "string"}])

        with caplog.at_level(logging.WARNING):
            view = host.catalog()

        assert await view["greet"].invoke(["x"]) == "own"
        assert await view["repeatWord"].invoke(["x"]) == "additional only"
        assert "shadows" in caplog.text

    def test_view_is_read_only(self):
        view = Greeter().catalog()
        with pytest.raises(TypeError):
            view["greet"] = view["repeatWord"]  # type: ignore[index]

    def test_list_tools_exposes_schema(self):
        tool = Greeter().catalog().get_tool("repeatWord")
        assert tool is not None
        assert tool.raw_schema == {
            "type": "object",
            "properties": {
                "word": {"type": "string"},
                "times": {"type": "number", "description": "Default: 2"},
                "shout": {"type": "boolean", "description": "Default: False"},
            },
            "required": ["word", "times", "shout"],
        }
        assert Greeter().catalog().get_tool("missing") is None

    def test_self_nesting_is_rejected(self):
        toolset = Greeter()
        with pytest.raises(ToolDefinitionError):
            toolset.add_nested(toolset)
