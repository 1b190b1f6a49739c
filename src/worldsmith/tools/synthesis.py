"""
Run-time tool creation.

The model can ask for a new tool by calling ``tool_creation_tool`` with a ``name`` and a natural
language ``description``.  :class:`CodeSynthesizer` then sends a separate, single-shot prompt to the
engine asking for the *body* of a Python function, compiles that body against the world's capability
set, and registers the result like any other tool.

Synthesized code is trusted to the same degree as the rest of the application.  Its globals are
limited to the capability set and a small builtins table, but this is not a sandbox.
"""

from __future__ import annotations

import builtins
import logging
import re
import textwrap
from typing import (
    Any,
    Callable,
    Dict,
    Mapping,
)

from worldsmith.agent.engine import (
    EngineError,
    InferenceEngine,
)
from worldsmith.core.schema import (
    Message,
    Role,
)
from worldsmith.tools import (
    ToolDescriptor,
    ToolRegistrationError,
    ToolRegistry,
    validate_tool_name,
)

logger = logging.getLogger(__name__)

TOOL_CREATION_TOOL_NAME = "tool_creation_tool"

CODE_BLOCK_RE = re.compile(r"```(?:python|py)[ \t]*\n([\s\S]*?)```")

SYNTHESIZED_PARAMETERS: Dict[str, Any] = {
    "type": "object",
    "description": "Parameters defined by the tool description.",
}

TOOL_CREATION_PARAMETERS: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "The name for the new tool."},
        "description": {
            "type": "string",
            "description": "Detailed description of the new tool's function and its parameters.",
        },
    },
    "required": ["name", "description"],
}

TOOL_CREATION_DESCRIPTION = (
    "Creates a new tool that you can use later. Provide a 'name' for the new tool and a "
    "'description' of what it should do and what parameters it needs (as properties of a single "
    "object argument). The description should be clear enough to generate Python code for the "
    "tool's function."
)

_ALLOWED_BUILTINS = (
    "abs", "all", "any", "bool", "dict", "enumerate", "float", "int", "isinstance", "len",
    "list", "max", "min", "range", "reversed", "round", "set", "sorted", "str", "sum", "tuple",
    "zip", "Exception", "KeyError", "TypeError", "ValueError",
)
SAFE_BUILTINS: Dict[str, Any] = {name: getattr(builtins, name) for name in _ALLOWED_BUILTINS}

CODE_GEN_TEMPLATE = """\
Generate only the Python code for the body of a function.
The function is named '{name}'.
It receives a single dict argument named 'params'.
The function should perform the following action based on the description: {description}
The code may only use these names: {capabilities}.
- spawn_object(shape, position, size=1.0, color="gray") adds a primitive and returns the entity
- set_ground_color(color) recolors the ground plane
- list_entities() returns the user-created entities (each has name, kind, color, size, position)
- find_entity(name) resolves a name case-insensitively ("player" and "ground" are reserved) or returns None
- remove_entity(name) deletes a user-created entity and returns True on success
- Vector3(x, y, z) builds a position; player is the controlled avatar; play_sound(name) plays an effect
Imports are not available.
The function *must* return a string indicating success or failure (e.g., "Object moved successfully." \
or "Error: Object not found.").
Only output the raw Python code inside a ```python ... ``` block. Do not include the function \
signature itself (e.g. def {name}(params):), just the indented body.

Example Description: "Moves an object named 'target_object_name' found in 'params' to the position \
specified in 'params[\"target_position\"]' {{x, y, z}}."
Example Output:
```python
name = params.get("target_object_name")
position = params.get("target_position")
if not name or not position:
    return "Error: Missing required parameters 'target_object_name' or 'target_position'."
entity = find_entity(name)
if entity is None:
    return f"Error: Object named '{{name}}' not found."
entity.position = Vector3(position["x"], position["y"], position["z"])
return f"Object '{{entity.name}}' moved successfully to {{position}}."
```"""


class SynthesisFailed(RuntimeError):
    """Raised when no usable tool could be produced from the model's reply."""


def extract_code_block(reply: str) -> str:
    """Return the first fenced Python block in *reply*, or raise :class:`SynthesisFailed`."""
    match = CODE_BLOCK_RE.search(reply)
    if match is None or not match.group(1).strip():
        logger.error("Could not extract code block from reply: %s", reply)
        raise SynthesisFailed(
            "LLM response did not contain the expected Python code block. Response: "
            + reply[:200]
            + "..."
        )
    return match.group(1)


def compile_tool_body(
    name: str, body: str, capabilities: Mapping[str, Any]
) -> Callable[[Dict[str, Any]], Any]:
    """
    Turn a function body into ``def <name>(params): <body>`` whose globals are *capabilities*.

    Raises
    ------
    SynthesisFailed
        If the body is not valid Python.
    """
    source = f"def {name}(params):\n" + textwrap.indent(textwrap.dedent(body), "    ")
    namespace: Dict[str, Any] = {"__builtins__": SAFE_BUILTINS, **capabilities}
    try:
        code = compile(source, f"<tool {name}>", "exec")
    except SyntaxError as exc:
        raise SynthesisFailed(f"Generated code is not valid Python: {exc}") from exc
    exec(code, namespace)  # pylint: disable=exec-used
    return namespace[name]


def wrap_synthesized(
    name: str, fn: Callable[[Dict[str, Any]], Any]
) -> Callable[[Dict[str, Any]], str]:
    """Normalize *fn* so it always returns text and never raises."""

    def handler(params: Dict[str, Any]) -> str:
        try:
            result = fn(params)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Error executing synthesized tool '%s'", name)
            return f"Error executing tool '{name}': {exc}"
        if not isinstance(result, str):
            logger.warning("Tool '%s' did not return a string, using generic message", name)
            return f"Tool '{name}' executed."
        return result

    return handler


class CodeSynthesizer:
    """
    Builds tools from descriptions with the help of the inference engine.

    *engine_provider* is called for every request so an engine swapped in by a model reload is
    picked up.  *on_start* is called with the tool name just before the code-generation request.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        engine_provider: Callable[[], InferenceEngine | None],
        capabilities: Mapping[str, Any],
        temperature: float = 0.5,
        on_start: Callable[[str], None] | None = None,
    ) -> None:
        self.registry = registry
        self.engine_provider = engine_provider
        self.capabilities = dict(capabilities)
        self.temperature = temperature
        self.on_start = on_start

    def is_reserved(self, name: str) -> bool:
        """True if *name* would shadow a capability or builtin inside tool code."""
        return name in self.capabilities or name in SAFE_BUILTINS

    def build_prompt(self, name: str, description: str) -> list[Message]:
        content = CODE_GEN_TEMPLATE.format(
            name=name,
            description=description,
            capabilities=", ".join(sorted(self.capabilities)),
        )
        return [Message(role=Role.USER, content=content)]

    async def synthesize(self, name: str, description: str) -> ToolDescriptor:
        """
        Generate, compile and register a tool called *name*.

        Raises
        ------
        SynthesisFailed
            If the name is reserved, the engine fails, the reply has no code block, the code does
            not compile, or the registry rejects the name.
        """
        if self.is_reserved(name):
            raise SynthesisFailed(f"'{name}' is reserved for tool code and cannot name a tool.")
        engine = self.engine_provider()
        if engine is None:
            raise SynthesisFailed("No inference engine is loaded.")

        if self.on_start is not None:
            self.on_start(name)

        try:
            reply = await engine.complete(self.build_prompt(name, description), self.temperature)
        except EngineError as exc:
            raise SynthesisFailed(str(exc)) from exc

        body = extract_code_block(reply)
        logger.debug("Generated function body for '%s':\n%s", name, body)
        fn = compile_tool_body(name, body, self.capabilities)

        descriptor = ToolDescriptor(
            name=name,
            description=description,
            handler=wrap_synthesized(name, fn),
            parameters=SYNTHESIZED_PARAMETERS,
            synthesized=True,
        )
        try:
            self.registry.register(descriptor)
        except ToolRegistrationError as exc:
            raise SynthesisFailed(str(exc)) from exc
        logger.info("Tool '%s' created successfully", name)
        return descriptor

    async def create_tool(self, params: Dict[str, Any]) -> str:
        """Handler for ``tool_creation_tool``; reports the outcome as text."""
        name = params.get("name")
        description = params.get("description")
        if not name or not description:
            return "Error: Tool creation requires both 'name' and 'description'."
        if name in self.registry:
            return f"Error: A tool with the name '{name}' already exists."
        try:
            validate_tool_name(name)
        except ToolRegistrationError as exc:
            return f"Error: {exc}"
        if self.is_reserved(name):
            return f"Error: '{name}' is reserved for tool code and cannot name a tool."

        try:
            await self.synthesize(name, description)
        except SynthesisFailed as exc:
            logger.error("Error during tool creation process: %s", exc)
            return f"Failed to create tool '{name}'. Error: {exc}"
        return f"Tool '{name}' created successfully! You can now use it."

    def descriptor(self) -> ToolDescriptor:
        """The ``tool_creation_tool`` entry to seed into the registry."""
        return ToolDescriptor(
            name=TOOL_CREATION_TOOL_NAME,
            description=TOOL_CREATION_DESCRIPTION,
            handler=self.create_tool,
            parameters=TOOL_CREATION_PARAMETERS,
        )
