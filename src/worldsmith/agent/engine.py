"""
Inference engine interface for Worldsmith.

This module is the only place that *directly* calls an LLM.  Everything else (turn controller,
tools, session) stays model-agnostic and talks to an :class:`InferenceEngine`.

We support three back-ends out of the box:

1. **OpenAI** via the official async SDK (requires ``OPENAI_API_KEY``).
2. **Anthropic** via the official async SDK (requires ``ANTHROPIC_API_KEY``).
3. **Local** OpenAI-compatible servers (vLLM, llama.cpp, TGI, MLC) over plain HTTP.

Additional providers can be added by subclassing :class:`InferenceEngine` and registering via
:func:`register_engine`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Sequence,
    Type,
)

import httpx

from worldsmith.config import settings
from worldsmith.core.schema import (
    Message,
    Role,
)

logger = logging.getLogger(__name__)


class EngineError(RuntimeError):
    """Raised when a completion request fails or returns an unusable shape."""


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_ENGINE_REGISTRY: dict[str, Type["InferenceEngine"]] = {}


def register_engine(name: str) -> Callable:
    """Decorator to register an engine class under *name*."""

    def wrapper(cls: Type["InferenceEngine"]) -> Type["InferenceEngine"]:
        cls.name = name
        _ENGINE_REGISTRY[name] = cls
        return cls

    return wrapper


def available_engines() -> List[str]:
    return sorted(_ENGINE_REGISTRY)


def load_engine(name: str | None = None, model: str | None = None) -> "InferenceEngine":
    """
    Factory that returns an instantiated engine.

    Fallback order:
    1. *name* / *model* args
    2. ``settings.ENGINE`` / ``settings.MODEL`` env options
    """

    target = name or settings.ENGINE
    cls = _ENGINE_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Engine '{target}' is not registered.")
    return cls(model or settings.MODEL)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class InferenceEngine(ABC):
    """Asynchronous text-completion service."""

    name: ClassVar[str] = ""

    def __init__(self, model: str) -> None:
        self.model = model

    @abstractmethod
    async def complete(self, messages: Sequence[Message], temperature: float) -> str:
        """
        Return the model's reply to *messages*.

        Raises
        ------
        EngineError
            On transport failures or when the reply has no text content.
        """

    async def close(self) -> None:
        """Release any client resources.  Engines are not reused after this."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"


def _content_or_error(content: Any, provider: str) -> str:
    if not isinstance(content, str):
        logger.error("%s returned no text content", provider)
        raise EngineError(f"Invalid response structure from {provider}.")
    return content


# ---------------------------------------------------------------------------
# Concrete engines
# ---------------------------------------------------------------------------
@register_engine("local")
class LocalEngine(InferenceEngine):
    """OpenAI-compatible ``/chat/completions`` endpoint reached with httpx."""

    def __init__(
        self,
        model: str,
        endpoint: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(model)
        self.endpoint = (endpoint or settings.LOCAL_ENDPOINT).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT)

    async def complete(self, messages: Sequence[Message], temperature: float) -> str:
        payload = {
            "model": self.model,
            "messages": [m.to_wire() for m in messages],
            "temperature": temperature,
            "stream": False,
        }
        try:
            resp = await self._client.post(f"{self.endpoint}/chat/completions", json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            logger.error("Local engine request error: %s", str(e))
            raise EngineError(f"Error calling local engine: {e}") from e
        except ValueError as e:
            raise EngineError(f"Local engine returned invalid JSON: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise EngineError("Invalid response structure from local engine.") from e
        logger.debug("Local engine response: %s", content)
        return _content_or_error(content, "local engine")

    async def close(self) -> None:
        await self._client.aclose()


@register_engine("openai")
class OpenAIEngine(InferenceEngine):
    """OpenAI chat completions."""

    def __init__(self, model: str) -> None:
        super().__init__(model)
        import openai  # pylint: disable=import-outside-toplevel

        self._client = openai.AsyncOpenAI(api_key=settings.OPENAI_API_KEY)

    async def complete(self, messages: Sequence[Message], temperature: float) -> str:
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                messages=[m.to_wire() for m in messages],  # type: ignore[misc]
                temperature=temperature,
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.error("OpenAI engine error: %s", str(e))
            raise EngineError(f"Error calling OpenAI: {e}") from e

        if not resp.choices:
            raise EngineError("Invalid response structure from OpenAI.")
        content = resp.choices[0].message.content
        logger.debug("OpenAI engine response: %s", content)
        return _content_or_error(content, "OpenAI")

    async def close(self) -> None:
        await self._client.close()


def to_anthropic_messages(messages: Sequence[Message]) -> tuple[str, List[Dict[str, str]]]:
    """
    Split *messages* into Anthropic's ``system`` string and alternating turns.

    System messages are lifted out.  Leading assistant messages (the tool catalogue) are folded into
    the system string because the Messages API requires the first turn to come from the user, and
    consecutive messages with the same role are merged.
    """
    system_parts: List[str] = []
    turns: List[Dict[str, str]] = []
    for msg in messages:
        if msg.role == Role.SYSTEM or (msg.role == Role.ASSISTANT and not turns):
            system_parts.append(msg.content)
        elif turns and turns[-1]["role"] == msg.role.value:
            turns[-1]["content"] += "\n\n" + msg.content
        else:
            turns.append(msg.to_wire())
    return "\n\n".join(system_parts), turns


@register_engine("anthropic")
class AnthropicEngine(InferenceEngine):
    """Anthropic Claude messages."""

    def __init__(self, model: str) -> None:
        super().__init__(model)
        import anthropic  # pylint: disable=import-outside-toplevel

        self._client = anthropic.AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)

    async def complete(self, messages: Sequence[Message], temperature: float) -> str:
        system, turns = to_anthropic_messages(messages)
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=4096,
                system=system,
                messages=turns,  # type: ignore[arg-type]
                temperature=min(temperature, 1.0),
            )
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Anthropic engine error: %s", str(e))
            raise EngineError(f"Error calling Anthropic: {e}") from e

        content = "".join(block.text for block in response.content if block.type == "text")
        if not content:
            raise EngineError("Invalid response structure from Anthropic.")
        logger.debug("Anthropic engine response: %s", content)
        return content

    async def close(self) -> None:
        await self._client.close()
