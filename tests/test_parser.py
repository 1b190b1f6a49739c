"""Tests for splitting model output into text and an action."""

import json

from worldsmith.core.parser import (
    parse_response,
    render_action,
)
from worldsmith.core.schema import (
    ActionOnly,
    ActionRequest,
    Malformed,
    TextAndAction,
    TextOnly,
)

GROUND_RED = '{"tool_name": "change_ground_color", "arguments": {"color": "red"}}'


def test_plain_text() -> None:
    result = parse_response("Hello there!")
    assert isinstance(result, TextOnly)
    assert result.text == "Hello there!"


def test_text_and_action_strips_block() -> None:
    raw = f"Painting it now.\n```json\n{GROUND_RED}\n```\nEnjoy!"
    result = parse_response(raw)
    assert isinstance(result, TextAndAction)
    assert result.text == "Painting it now.\n\nEnjoy!"
    assert result.action.tool_name == "change_ground_color"
    assert result.action.arguments == {"color": "red"}


def test_action_only() -> None:
    result = parse_response(f"```json\n{GROUND_RED}\n```")
    assert isinstance(result, ActionOnly)
    assert result.action.tool_name == "change_ground_color"


def test_invalid_json_keeps_original_text() -> None:
    raw = "Let me try.\n```json\n{tool_name: change_ground_color}\n```"
    result = parse_response(raw)
    assert isinstance(result, Malformed)
    assert result.raw_text == raw
    assert "invalid JSON" in result.error


def test_missing_arguments_is_malformed() -> None:
    result = parse_response('```json\n{"tool_name": "list_objects"}\n```')
    assert isinstance(result, Malformed)
    assert "arguments" in result.error


def test_non_object_arguments_is_malformed() -> None:
    result = parse_response('```json\n{"tool_name": "x", "arguments": [1, 2]}\n```')
    assert isinstance(result, Malformed)


def test_array_payload_is_malformed() -> None:
    result = parse_response("```json\n[1, 2, 3]\n```")
    assert isinstance(result, Malformed)


def test_only_first_block_is_honoured() -> None:
    second = '{"tool_name": "list_objects", "arguments": {}}'
    raw = f"```json\n{GROUND_RED}\n```\nthen\n```json\n{second}\n```"
    result = parse_response(raw)
    assert isinstance(result, TextAndAction)
    assert result.action.tool_name == "change_ground_color"
    assert "list_objects" in result.text


def test_other_fences_are_plain_text() -> None:
    raw = "Here is code:\n```python\nprint('hi')\n```"
    assert isinstance(parse_response(raw), TextOnly)


def test_rendered_action_parses_to_same_content() -> None:
    """Embedding a rendered action and parsing it back yields the same structure."""
    action = ActionRequest(
        tool_name="create_object",
        arguments={"shape": "cone", "position": {"x": 1, "y": 0, "z": -2.5}, "color": "#00ff00"},
    )
    result = parse_response(f"Sure.\n{render_action(action)}")
    assert isinstance(result, TextAndAction)
    assert result.action == action
    assert json.loads(json.dumps(result.action.model_dump())) == action.model_dump()
