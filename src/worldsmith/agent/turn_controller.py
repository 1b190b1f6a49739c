"""
The turn state machine.

One call to :meth:`TurnController.handle_user_message` drives a whole turn:

    Idle -> Generating -> (Retrying -> Generating)* -> [SynthesizingTool] -> Idle
                                     \\-> Error -> Idle

Every path ends in ``Idle`` so the next user message is always accepted.  Only one turn runs at a
time; messages arriving while a turn is in flight are rejected without touching any state.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import (
    List,
    Optional,
)

from worldsmith.agent.engine import (
    EngineError,
    InferenceEngine,
)
from worldsmith.config import (
    Settings,
    settings as default_settings,
)
from worldsmith.core.parser import parse_response
from worldsmith.core.schema import (
    ActionOnly,
    ActionRequest,
    Malformed,
    Notice,
    NoticeKind,
    TextAndAction,
    TextOnly,
    TurnOutcome,
    TurnStatus,
)
from worldsmith.core.session import ConversationSession
from worldsmith.tools import (
    ToolNotFound,
    ToolRegistry,
)
from worldsmith.tools.synthesis import CodeSynthesizer
from worldsmith.tools.world_tools import register_world_tools
from worldsmith.world import SceneWorld

logger = logging.getLogger(__name__)

EMPTY_REPLY_PLACEHOLDER = "[LLM returned an empty response]"
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


class ControllerBusy(RuntimeError):
    """Raised when an operation needs the controller to be idle."""


class TurnController:
    """Owns the session, the registry and the engine, and runs turns against them."""

    def __init__(
        self,
        engine: Optional[InferenceEngine] = None,
        world: Optional[SceneWorld] = None,
        config: Optional[Settings] = None,
        session: Optional[ConversationSession] = None,
        registry: Optional[ToolRegistry] = None,
    ) -> None:
        self.config = config or default_settings
        self.engine = engine
        self.world = world or SceneWorld()
        self.session = session or ConversationSession(self.config.SYSTEM_PROMPT)
        self.registry = registry or ToolRegistry()
        self.temperature = self.config.TEMPERATURE
        self.retry_limit = self.config.RETRY_LIMIT
        self.retry_delay = self.config.RETRY_DELAY

        self.status = TurnStatus.IDLE
        self.retry_count = 0
        self._notices: List[Notice] = []

        self.synthesizer = CodeSynthesizer(
            self.registry,
            engine_provider=lambda: self.engine,
            capabilities=self.world.capabilities(),
            temperature=self.config.SYNTHESIS_TEMPERATURE,
            on_start=self._on_synthesis_start,
        )
        self.seed_tools()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    @property
    def is_idle(self) -> bool:
        return self.status == TurnStatus.IDLE

    def seed_tools(self) -> None:
        """Reset the registry to the static tool set."""
        self.registry.clear()
        self.registry.register(self.synthesizer.descriptor())
        register_world_tools(self.registry, self.world)
        logger.info("Initial tools set up: %s", self.registry.names())

    async def reload_engine(self, engine: InferenceEngine) -> Notice:
        """
        Swap in a new engine (model switch).

        History is cleared and synthesized tools are dropped before the old engine is closed, so a
        message accepted while the close is pending already runs against the new engine.

        Raises
        ------
        ControllerBusy
            If a turn is in flight.
        """
        if not self.is_idle:
            raise ControllerBusy("Cannot reload the engine while a turn is in progress.")
        previous, self.engine = self.engine, engine
        self.session.reset()
        self.retry_count = 0
        self.seed_tools()
        logger.info("Loaded engine %r", engine)
        if previous is not None:
            logger.info("Unloading previous engine %r", previous)
            await previous.close()
        return Notice(
            kind=NoticeKind.SYSTEM,
            text=f"Hello! I'm ready to play. I'm currently running the {engine.model} model.",
        )

    def set_temperature(self, value: float) -> float:
        self.temperature = min(MAX_TEMPERATURE, max(MIN_TEMPERATURE, float(value)))
        return self.temperature

    # ------------------------------------------------------------------ #
    # Turn handling
    # ------------------------------------------------------------------ #
    async def handle_user_message(self, text: str) -> TurnOutcome:
        """Run one full turn for *text* and return everything it surfaced."""
        text = text.strip()
        if not self.is_idle or not text:
            logger.info("Rejecting message (status=%s)", self.status.value)
            return TurnOutcome(accepted=False, status=self.status)
        if self.engine is None:
            return TurnOutcome(
                accepted=False,
                notices=[Notice(kind=NoticeKind.ERROR, text="LLM Engine is not loaded.")],
                status=self.status,
            )

        self._notices = []
        self.retry_count = 0
        self.session.append_user(text)
        try:
            await self._generate(self.engine)
        finally:
            self.status = TurnStatus.IDLE
        return TurnOutcome(notices=self._notices, status=self.status)

    async def _generate(self, engine: InferenceEngine) -> None:
        messages = self.session.build_prompt(self.registry.list_all())
        while True:
            self.status = TurnStatus.GENERATING
            try:
                reply = await engine.complete(messages, self.temperature)
            except EngineError as exc:
                self.retry_count += 1
                logger.error(
                    "LLM generation error (attempt %d/%d): %s",
                    self.retry_count,
                    self.retry_limit + 1,
                    exc,
                )
                if self.retry_count > self.retry_limit:
                    self.status = TurnStatus.ERROR
                    self._notify(
                        NoticeKind.ERROR,
                        f"LLM generation failed after {self.retry_limit} retries. Error: {exc}",
                    )
                    self.retry_count = 0
                    return
                self.status = TurnStatus.RETRYING
                self._notify(
                    NoticeKind.ERROR,
                    f"LLM generation failed, retrying... ({self.retry_count}/{self.retry_limit})",
                )
                await asyncio.sleep(self.retry_delay)
                continue

            self.retry_count = 0
            await self._handle_reply(reply)
            return

    async def _handle_reply(self, reply: str) -> None:
        result = parse_response(reply)

        if isinstance(result, Malformed):
            self._notify(
                NoticeKind.ERROR,
                f"LLM tried to call a tool with invalid JSON format: {result.error}",
            )
            self._say(result.raw_text.strip())
            return
        if isinstance(result, TextOnly):
            self._say(result.text.strip() or EMPTY_REPLY_PLACEHOLDER)
            return

        if isinstance(result, TextAndAction):
            self._say(result.text)
        elif isinstance(result, ActionOnly):
            # Nothing to store, but the user still gets feedback before the tool runs.
            self._notify(NoticeKind.ASSISTANT, f"[Executing {result.action.tool_name}]")
        await self._dispatch(result.action)

    async def _dispatch(self, action: ActionRequest) -> None:
        self._notify(
            NoticeKind.TOOL_CALL,
            f"Executing tool: {action.tool_name} with args: {json.dumps(action.arguments)}",
        )
        try:
            self.registry.get(action.tool_name)
        except ToolNotFound:
            logger.warning("LLM tried to call unknown tool: %s", action.tool_name)
            self._notify(
                NoticeKind.ERROR,
                f"Unknown tool called: '{action.tool_name}'. "
                f"Available tools: {', '.join(self.registry.names())}",
            )
            return

        result = await self.registry.invoke(action.tool_name, action.arguments)
        self._notify(NoticeKind.TOOL_RESULT, f"Tool Result: {result}")

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _on_synthesis_start(self, name: str) -> None:
        self.status = TurnStatus.SYNTHESIZING_TOOL
        self._notify(NoticeKind.TOOL_CALL, f"Attempting to create new tool: '{name}'...")

    def _say(self, text: str) -> None:
        self.session.append_assistant(text)
        self._notify(NoticeKind.ASSISTANT, text)

    def _notify(self, kind: NoticeKind, text: str) -> None:
        self._notices.append(Notice(kind=kind, text=text))
