"""
Shared fixtures for the Worldsmith test suite.

Provides a scripted inference engine so turn-level tests run without any network access.
"""

from __future__ import annotations

from typing import (
    List,
    Sequence,
    Tuple,
    Union,
)

import pytest

from worldsmith.agent.engine import InferenceEngine
from worldsmith.agent.turn_controller import TurnController
from worldsmith.config import Settings
from worldsmith.core.schema import Message
from worldsmith.world import SceneWorld

Reply = Union[str, Exception]


class ScriptedEngine(InferenceEngine):
    """Returns (or raises) pre-scripted replies in order and records every request."""

    name = "scripted"

    def __init__(self, replies: Sequence[Reply] = (), model: str = "scripted-model") -> None:
        super().__init__(model)
        self.replies: List[Reply] = list(replies)
        self.calls: List[Tuple[List[Message], float]] = []
        self.closed = False

    async def complete(self, messages: Sequence[Message], temperature: float) -> str:
        self.calls.append((list(messages), temperature))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def scripted_engine() -> type[ScriptedEngine]:
    """The :class:`ScriptedEngine` class, for tests that build their own."""
    return ScriptedEngine


@pytest.fixture()
def test_settings() -> Settings:
    """Defaults with no retry delay."""
    return Settings(RETRY_DELAY=0.0, RETRY_LIMIT=2, TEMPERATURE=0.7)


@pytest.fixture()
def world() -> SceneWorld:
    return SceneWorld()


@pytest.fixture()
def make_controller(world: SceneWorld, test_settings: Settings):
    """Factory: ``make_controller(*replies)`` -> controller backed by a ScriptedEngine."""

    def factory(*replies: Reply) -> TurnController:
        return TurnController(engine=ScriptedEngine(replies), world=world, config=test_settings)

    return factory
