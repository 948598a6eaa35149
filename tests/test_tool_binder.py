import pytest

from structask.core.errors import ToolNameMismatch
from structask.llm.completion_types import ModelTier
from structask.tools.binder import bind_tools, validate_tool_names
from tests.helpers import Mult, Sum, SumParams
from structask.prompting.schema import schema_for


def test_declarations_are_sorted_and_in_function_format():
    declarations = bind_tools({"sum": Sum(), "mult": Mult()}, ModelTier.STANDARD)

    assert [d["function"]["name"] for d in declarations] == ["mult", "sum"]
    assert declarations[1] == {
        "type": "function",
        "function": {
            "name": "sum",
            "description": "adds numbers",
            "parameters": schema_for(SumParams),
        },
    }


def test_mismatched_key_is_a_configuration_error():
    with pytest.raises(ToolNameMismatch) as excinfo:
        bind_tools({"sum": Mult(), "mult": Mult()}, ModelTier.STANDARD)

    assert excinfo.value.key == "sum"
    assert excinfo.value.defined_name == "mult"
    assert "'sum' does not match definition name 'mult'" in str(excinfo.value)


def test_vision_tier_binds_no_tools():
    assert bind_tools({"sum": Sum(), "oops": Mult()}, ModelTier.VISION) == []


def test_no_tools():
    assert bind_tools({}, ModelTier.STANDARD) == []


def test_validate_tool_names_ignores_model_tier():
    validate_tool_names({"sum": Sum(), "mult": Mult()})

    with pytest.raises(ToolNameMismatch) as excinfo:
        validate_tool_names({"sum": Sum(), "oops": Mult()})

    assert (excinfo.value.key, excinfo.value.defined_name) == ("oops", "mult")
