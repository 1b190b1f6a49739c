"""
Tests for the tool registry.

Run with:
$ pytest -q
"""

import pytest

from worldsmith.tools import (
    DuplicateToolName,
    InvalidToolName,
    ToolDescriptor,
    ToolNotFound,
    ToolRegistry,
)


def _add(params: dict) -> int:
    """Return the sum of two integers (used only for tests)."""
    return params["a"] + params["b"]


@pytest.fixture()
def registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(ToolDescriptor(name="add", description="Adds a and b.", handler=_add))
    return reg


@pytest.mark.asyncio
async def test_invoke_success_coerces_to_text(registry: ToolRegistry) -> None:
    """Invoke should return the handler's value as text."""

    assert await registry.invoke("add", {"a": 2, "b": 3}) == "5"


@pytest.mark.asyncio
async def test_invoke_missing_tool(registry: ToolRegistry) -> None:
    """Invoking an unknown tool returns an error string instead of raising."""

    result = await registry.invoke("not_a_tool", {})
    assert result.startswith("Error")
    assert "not_a_tool" in result


@pytest.mark.asyncio
async def test_invoke_handler_exception_becomes_text(registry: ToolRegistry) -> None:
    """A KeyError inside the handler (missing 'b') is reported, not propagated."""

    result = await registry.invoke("add", {"a": 2})
    assert result.startswith("Error during execution of tool 'add'")


@pytest.mark.asyncio
async def test_invoke_bad_argument_type(registry: ToolRegistry) -> None:
    """A TypeError is reported as an argument problem."""

    result = await registry.invoke("add", {"a": 2, "b": "x"})
    assert "Invalid arguments" in result


@pytest.mark.asyncio
async def test_invoke_awaits_async_handlers() -> None:
    reg = ToolRegistry()

    async def shout(params: dict) -> str:
        return params["text"].upper()

    reg.register(ToolDescriptor(name="shout", description="Upper-cases text.", handler=shout))
    assert await reg.invoke("shout", {"text": "hi"}) == "HI"


@pytest.mark.asyncio
async def test_invoke_none_result_gets_generic_message() -> None:
    reg = ToolRegistry()

    @reg.tool("noop", "Does nothing.")
    def noop(params: dict) -> None:
        return None

    assert await reg.invoke("noop") == "Tool 'noop' executed."


def test_duplicate_registration_keeps_first(registry: ToolRegistry) -> None:
    """Registering the same name twice is rejected and the first handler survives."""

    second = ToolDescriptor(name="add", description="Imposter.", handler=lambda p: "nope")
    with pytest.raises(DuplicateToolName):
        registry.register(second)
    assert registry.get("add").description == "Adds a and b."
    assert registry.names() == ["add"]


@pytest.mark.parametrize("name", ["123bad", "bad-name", "", "has space"])
def test_invalid_names_rejected(name: str) -> None:
    reg = ToolRegistry()
    with pytest.raises(InvalidToolName):
        reg.register(ToolDescriptor(name=name, description="x", handler=lambda p: "x"))
    assert len(reg) == 0


def test_valid_name_accepted() -> None:
    reg = ToolRegistry()
    reg.register(ToolDescriptor(name="good_name1", description="x", handler=lambda p: "x"))
    assert "good_name1" in reg


def test_get_unknown_raises(registry: ToolRegistry) -> None:
    with pytest.raises(ToolNotFound):
        registry.get("missing")


def test_clear_and_list_all(registry: ToolRegistry) -> None:
    registry.register(ToolDescriptor(name="other", description="x", handler=lambda p: "x"))
    assert [t.name for t in registry.list_all()] == ["add", "other"]
    registry.clear()
    assert registry.list_all() == []
