"""
Splits raw model output into display text and an optional action request.

The model is told to embed at most one block of the form

    ```json
    {"tool_name": "<name>", "arguments": { ... }}
    ```

anywhere in its reply.  Only the first such block is honoured.  A block that is present but
cannot be decoded never raises: it is reported as :class:`Malformed` and the original
text is kept so the user can see what the model tried to do.
"""

import json
import logging
import re

from pydantic import ValidationError

from worldsmith.core.schema import (
    ActionOnly,
    ActionRequest,
    GenerationResult,
    Malformed,
    TextAndAction,
    TextOnly,
)

logger = logging.getLogger(__name__)

ACTION_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")


class ActionDecodeError(ValueError):
    """Raised when an action block does not hold {"tool_name": ..., "arguments": {...}}."""


def decode_action(block: str) -> ActionRequest:
    """
    Decode the contents of an action block.

    Raises
    ------
    ActionDecodeError
        If *block* is not valid JSON or is missing ``tool_name`` / ``arguments``.
    """
    try:
        payload = json.loads(block)
    except json.JSONDecodeError as exc:
        raise ActionDecodeError(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ActionDecodeError("action block must be a JSON object")
    if "tool_name" not in payload or "arguments" not in payload:
        raise ActionDecodeError("action block must have 'tool_name' and 'arguments'")
    try:
        return ActionRequest.model_validate(payload)
    except ValidationError as exc:
        raise ActionDecodeError(str(exc)) from exc


def parse_response(raw_text: str) -> GenerationResult:
    """Classify *raw_text* as text, action, text plus action, or malformed."""
    match = ACTION_BLOCK_RE.search(raw_text)
    if match is None:
        return TextOnly(text=raw_text)

    try:
        action = decode_action(match.group(1).strip())
    except ActionDecodeError as exc:
        logger.warning("Discarding malformed action block: %s", exc)
        return Malformed(raw_text=raw_text, error=str(exc))

    remaining = (raw_text[: match.start()] + raw_text[match.end() :]).strip()
    logger.debug("Parsed action %s with args=%s", action.tool_name, action.arguments)
    if not remaining:
        return ActionOnly(action=action)
    return TextAndAction(text=remaining, action=action)


def render_action(action: ActionRequest) -> str:
    """Serialize *action* back into the fenced wire format."""
    body = json.dumps(action.model_dump(), indent=2)
    return f"```json\n{body}\n```"
