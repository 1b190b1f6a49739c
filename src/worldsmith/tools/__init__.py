"""
Tool registry for Worldsmith.

This module provides a registry to look tools up by name and a decorator to register them.
Tools are callables that take a single ``arguments`` dict and return text.  Handlers may
also be coroutine functions; :meth:`ToolRegistry.invoke` awaits them.

Tools come from two places: the static set seeded at startup (see
:mod:`worldsmith.tools.world_tools`) and tools synthesized at run time (see
:mod:`worldsmith.tools.synthesis`).  Both go through :meth:`ToolRegistry.register`,
so both obey the same name rules.
"""

import inspect
import logging
import re
from dataclasses import (
    dataclass,
    field,
)
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Union,
)

logger = logging.getLogger(__name__)

TOOL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ToolResult = Union[Any, Awaitable[Any]]
ToolHandler = Callable[[Dict[str, Any]], ToolResult]


class ToolRegistrationError(ValueError):
    """Base class for rejected registrations."""


class InvalidToolName(ToolRegistrationError):
    """Raised when a tool name is not a valid identifier."""


class DuplicateToolName(ToolRegistrationError):
    """Raised when a tool with the same name is already registered."""


class ToolNotFound(LookupError):
    """Raised when looking up a name that is not registered."""


@dataclass
class ToolDescriptor:
    """A registered tool with its description, parameter schema, and handler."""

    name: str
    description: str
    handler: ToolHandler
    parameters: Mapping[str, Any] = field(default_factory=dict)
    synthesized: bool = False


def validate_tool_name(name: str) -> None:
    """Raise :class:`InvalidToolName` unless *name* matches ``[A-Za-z_][A-Za-z0-9_]*``."""
    if not isinstance(name, str) or not TOOL_NAME_RE.match(name):
        raise InvalidToolName(
            f"Tool name '{name}' is invalid. Use letters, numbers, and underscores, "
            "starting with a letter or underscore."
        )


class ToolRegistry:
    """Name -> :class:`ToolDescriptor` mapping owned by the turn controller."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        """
        Add *descriptor* to the registry.

        Raises
        ------
        InvalidToolName
            If the name is not a valid identifier.
        DuplicateToolName
            If a tool with the same name is already registered.  The existing entry is kept.
        """
        validate_tool_name(descriptor.name)
        if descriptor.name in self._tools:
            raise DuplicateToolName(f"A tool with the name '{descriptor.name}' already exists.")
        self._tools[descriptor.name] = descriptor
        logger.debug(
            "Registered tool '%s' (synthesized=%s)", descriptor.name, descriptor.synthesized
        )
        return descriptor

    def tool(
        self, name: str, description: str, parameters: Mapping[str, Any] | None = None
    ) -> Callable[[ToolHandler], ToolHandler]:
        """
        Register the decorated function as a tool.

            @registry.tool("my_tool", "Does something.")
            def my_tool(params):
                return "done"
        """

        def wrapper(fn: ToolHandler) -> ToolHandler:
            self.register(
                ToolDescriptor(
                    name=name, description=description, handler=fn, parameters=parameters or {}
                )
            )
            return fn

        return wrapper

    def get(self, name: str) -> ToolDescriptor:
        """Return the descriptor registered as *name* or raise :class:`ToolNotFound`."""
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFound(f"Tool '{name}' is not registered.") from None

    def list_all(self) -> List[ToolDescriptor]:
        """Return all descriptors in registration order."""
        return list(self._tools.values())

    def names(self) -> List[str]:
        """Return all registered names in registration order."""
        return list(self._tools.keys())

    def clear(self) -> None:
        """Drop every tool, static and synthesized."""
        logger.debug("Clearing %d tools", len(self._tools))
        self._tools.clear()

    async def invoke(self, name: str, arguments: Dict[str, Any] | None = None) -> str:
        """
        Look up *name* and call its handler with *arguments*.

        Never raises: a missing tool, bad arguments, or an exception inside the handler are all
        converted into an ``"Error ..."`` string so the caller always has something to display.
        """
        if arguments is None:
            arguments = {}

        tool = self._tools.get(name)
        if tool is None:
            return f"Error: Tool '{name}' is not registered."

        try:
            logger.debug("Executing tool '%s' with args=%s", name, arguments)
            result = tool.handler(arguments)
            if inspect.isawaitable(result):
                result = await result
        except TypeError as exc:
            # Argument mismatch, usually the model passing the wrong shape.
            logger.exception("Argument error while executing tool '%s'", name)
            return f"Error: Invalid arguments for tool '{name}': {exc}"
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unhandled error in tool '%s'", name)
            return f"Error during execution of tool '{name}': {exc}"

        if result is None:
            return f"Tool '{name}' executed."
        return result if isinstance(result, str) else str(result)
