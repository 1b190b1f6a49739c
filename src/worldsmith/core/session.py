"""
Conversation state for a single chat with the model.

Only user messages and the model's own text are stored.  The tool catalogue is rebuilt on every call
to :meth:`ConversationSession.build_prompt` so tools created mid-conversation show up immediately,
and tool results are never written to history.
"""

from __future__ import annotations

import json
import logging
from typing import (
    Iterable,
    List,
)

from worldsmith.core.schema import (
    Message,
    Role,
)
from worldsmith.tools import ToolDescriptor

logger = logging.getLogger(__name__)

TOOL_USAGE_INSTRUCTIONS = """\
To use a tool, output a JSON block like this, along with any normal text:
```json
{
  "tool_name": "<name_of_tool>",
  "arguments": { <arguments_object> }
}
```"""


def format_catalogue(tools: Iterable[ToolDescriptor]) -> str:
    """Describe every tool (name, description, parameter schema) plus the action convention."""
    lines = ["You have the following tools available:"]
    entries = list(tools)
    if not entries:
        lines.append("- None currently defined.")
    for tool in entries:
        params = f" Parameters: {json.dumps(tool.parameters)}" if tool.parameters else ""
        lines.append(f"- {tool.name}: {tool.description}{params}")
    return "\n".join(lines) + "\n\n" + TOOL_USAGE_INSTRUCTIONS


class ConversationSession:
    """Ordered message history plus prompt assembly."""

    def __init__(self, system_prompt: str | None = None) -> None:
        self.system_prompt = system_prompt
        self._history: List[Message] = []

    @property
    def history(self) -> List[Message]:
        """A copy of the stored messages, oldest first."""
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)

    def append_user(self, text: str) -> None:
        self._history.append(Message(role=Role.USER, content=text))

    def append_assistant(self, text: str) -> None:
        self._history.append(Message(role=Role.ASSISTANT, content=text))

    def reset(self) -> None:
        """Forget the whole conversation."""
        logger.debug("Resetting session (%d messages dropped)", len(self._history))
        self._history.clear()

    def build_prompt(self, tools: Iterable[ToolDescriptor]) -> List[Message]:
        """
        Assemble the messages for the next completion request.

        The system preamble is included only while history is empty.  The catalogue message is
        generated fresh each time and is not stored.
        """
        messages: List[Message] = []
        if not self._history and self.system_prompt:
            messages.append(Message(role=Role.SYSTEM, content=self.system_prompt))
        messages.append(Message(role=Role.ASSISTANT, content=format_catalogue(tools)))
        messages.extend(self._history)
        return messages
