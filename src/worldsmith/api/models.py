"""
Pydantic models for Worldsmith API requests and responses.
This module defines the request and response schemas used by the Worldsmith API.
"""

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from worldsmith.core.schema import (
    Message,
    Notice,
    TurnStatus,
)


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class ChatRequest(BaseModel):
    """Incoming user message."""

    message: str = Field(..., min_length=1, description="User message for the model")


class ReloadRequest(BaseModel):
    """Switch to another engine and/or model."""

    engine: Optional[str] = Field(None, description="Engine back-end (default from settings)")
    model: Optional[str] = Field(None, description="Model identifier (default from settings)")


class TemperatureRequest(BaseModel):
    """New sampling temperature."""

    temperature: float = Field(..., ge=0.0, le=2.0)


class StatusResponse(BaseModel):
    """Controller state."""

    status: TurnStatus
    engine: Optional[str] = None
    model: Optional[str] = None
    temperature: float
    retry_count: int
    history_length: int


class ToolInfo(BaseModel):
    """One entry of the tool catalogue."""

    name: str
    description: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    synthesized: bool = False


class HistoryResponse(BaseModel):
    """Stored conversation."""

    messages: List[Message]


class ReloadResponse(BaseModel):
    """Greeting from the freshly loaded engine."""

    notice: Notice
