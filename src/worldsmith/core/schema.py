"""
Schema definitions for model <-> controller <-> tool messages.

These data models serve as the contract between the inference engine, the turn controller, and
individual tools.  We keep them separate from runtime logic so they can be imported anywhere without
side-effects.
"""

from enum import Enum
from typing import (
    Any,
    Dict,
    List,
    Literal,
    Union,
)

from pydantic import (
    BaseModel,
    Field,
)


class Role(str, Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single chat message, sent verbatim to the inference engine."""

    role: Role
    content: str

    def to_wire(self) -> Dict[str, str]:
        """Return the ``{"role": ..., "content": ...}`` dict most chat APIs expect."""
        return {"role": self.role.value, "content": self.content}


class ActionRequest(BaseModel):
    """A call that the model wants the controller to execute."""

    tool_name: str = Field(..., min_length=1, description="Registered tool name")
    arguments: Dict[str, Any] = Field(..., description="Keyword arguments for the tool")


# ---------------------------------------------------------------------------
# Parser results
# ---------------------------------------------------------------------------
class TextOnly(BaseModel):
    """Model output without any action block."""

    kind: Literal["text"] = "text"
    text: str


class ActionOnly(BaseModel):
    """Model output that was nothing but a valid action block."""

    kind: Literal["action"] = "action"
    action: ActionRequest


class TextAndAction(BaseModel):
    """Model output with prose and a valid action block (block already stripped)."""

    kind: Literal["text_and_action"] = "text_and_action"
    text: str
    action: ActionRequest


class Malformed(BaseModel):
    """Model output whose action block could not be decoded; *raw_text* is untouched."""

    kind: Literal["malformed"] = "malformed"
    raw_text: str
    error: str = ""


GenerationResult = Union[TextOnly, ActionOnly, TextAndAction, Malformed]


# ---------------------------------------------------------------------------
# Turn bookkeeping
# ---------------------------------------------------------------------------
class TurnStatus(str, Enum):
    """States of the turn controller."""

    IDLE = "idle"
    GENERATING = "generating"
    RETRYING = "retrying"
    SYNTHESIZING_TOOL = "synthesizing_tool"
    ERROR = "error"


class NoticeKind(str, Enum):
    """Categories of user-facing output produced during a turn."""

    ASSISTANT = "assistant"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    ERROR = "error"
    SYSTEM = "system"


class Notice(BaseModel):
    """One line of output for the presentation layer."""

    kind: NoticeKind
    text: str


class TurnOutcome(BaseModel):
    """Everything a single turn surfaced to the user."""

    accepted: bool = True
    notices: List[Notice] = Field(default_factory=list)
    status: TurnStatus = TurnStatus.IDLE
