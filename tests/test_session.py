"""Tests for prompt assembly and history handling."""

from worldsmith.core.schema import Role
from worldsmith.core.session import (
    ConversationSession,
    format_catalogue,
)
from worldsmith.tools import (
    ToolDescriptor,
    ToolRegistry,
)


def _registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.register(
        ToolDescriptor(
            name="change_ground_color",
            description="Changes the color of the ground plane.",
            handler=lambda p: "ok",
            parameters={"type": "object", "required": ["color"]},
        )
    )
    reg.register(
        ToolDescriptor(name="list_objects", description="Lists objects.", handler=lambda p: "ok")
    )
    return reg


def test_system_prompt_only_on_empty_history() -> None:
    session = ConversationSession("You are a game master.")
    first = session.build_prompt([])
    assert [m.role for m in first] == [Role.SYSTEM, Role.ASSISTANT]
    assert sum(m.role == Role.SYSTEM for m in first) == 1

    session.append_user("hi")
    second = session.build_prompt([])
    assert all(m.role != Role.SYSTEM for m in second)
    assert second[-1].content == "hi"


def test_no_system_message_when_preamble_empty() -> None:
    session = ConversationSession(None)
    assert [m.role for m in session.build_prompt([])] == [Role.ASSISTANT]


def test_catalogue_lists_every_tool_and_is_not_stored() -> None:
    reg = _registry()
    session = ConversationSession("sys")
    session.append_user("paint the ground red")

    prompt = session.build_prompt(reg.list_all())
    catalogue = prompt[0].content
    for tool in reg.list_all():
        assert tool.name in catalogue
        assert tool.description in catalogue
    assert '"required": ["color"]' in catalogue
    assert '"tool_name"' in catalogue
    assert [m.content for m in session.history] == ["paint the ground red"]


def test_catalogue_reflects_new_tools() -> None:
    reg = _registry()
    session = ConversationSession()
    assert "greet_player" not in session.build_prompt(reg.list_all())[0].content

    reg.register(ToolDescriptor(name="greet_player", description="Greets.", handler=lambda p: "hi"))
    assert "greet_player" in session.build_prompt(reg.list_all())[0].content


def test_empty_catalogue() -> None:
    assert "- None currently defined." in format_catalogue([])


def test_history_order_and_reset() -> None:
    session = ConversationSession("sys")
    session.append_user("one")
    session.append_assistant("two")
    session.append_user("three")

    prompt = session.build_prompt([])
    assert [m.content for m in prompt[1:]] == ["one", "two", "three"]
    assert [m.role for m in session.history] == [Role.USER, Role.ASSISTANT, Role.USER]

    session.reset()
    assert len(session) == 0
    assert session.build_prompt([])[0].role == Role.SYSTEM
