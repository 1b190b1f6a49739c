"""Built-in tools that act on the :class:`~worldsmith.world.SceneWorld`."""

import json
import logging
from typing import (
    Any,
    Dict,
)

from worldsmith.tools import (
    ToolDescriptor,
    ToolRegistry,
)
from worldsmith.world import (
    SHAPES,
    SceneWorld,
    Vector3,
    WorldError,
)

logger = logging.getLogger(__name__)

CREATE_OBJECT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "shape": {
            "type": "string",
            "description": "Shape of the object (e.g., 'cube', 'sphere').",
            "enum": list(SHAPES),
        },
        "position": {
            "type": "object",
            "properties": {
                "x": {"type": "number"},
                "y": {"type": "number"},
                "z": {"type": "number"},
            },
            "required": ["x", "y", "z"],
            "description": "World coordinates {x, y, z}.",
        },
        "size": {
            "type": "number",
            "description": "Approximate size of the object (e.g., 1). Default 1.",
            "default": 1,
        },
        "color": {
            "type": "string",
            "description": "Color of the object (e.g., 'red', '#00ff00'). Default 'gray'.",
            "default": "gray",
        },
    },
    "required": ["shape", "position"],
}

CHANGE_GROUND_COLOR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "color": {
            "type": "string",
            "description": "The new color for the ground (e.g., 'green', '#ff00ff').",
        }
    },
    "required": ["color"],
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def create_object(world: SceneWorld, params: Dict[str, Any]) -> str:
    pos = params.get("position")
    if not isinstance(pos, dict) or not all(_is_number(pos.get(axis)) for axis in "xyz"):
        return "Error: Invalid or missing 'position' object with x, y, z coordinates."
    shape = str(params.get("shape") or "cube").lower()
    try:
        entity = world.spawn_object(
            shape,
            Vector3(pos["x"], pos["y"], pos["z"]),
            size=params.get("size") or 1,
            color=params.get("color") or "gray",
        )
    except WorldError as exc:
        return f"Error: {exc}"
    return (
        f"Object '{entity.name}' ({entity.kind}) created successfully at "
        f"{json.dumps({'x': pos['x'], 'y': pos['y'], 'z': pos['z']})}."
    )


def change_ground_color(world: SceneWorld, params: Dict[str, Any]) -> str:
    color = params.get("color")
    if not color:
        return "Error: 'color' parameter is required."
    try:
        world.set_ground_color(color)
    except WorldError as exc:
        return f"Error: {exc}"
    return f"Ground color changed to {color}."


def list_objects(world: SceneWorld, params: Dict[str, Any]) -> str:
    entities = world.list_entities()
    if not entities:
        return "There are no user-created objects currently in the scene."
    lines = [f"- {entity.name} (Type: {entity.kind})" for entity in entities]
    return "Objects in the scene:\n" + "\n".join(lines)


def register_world_tools(registry: ToolRegistry, world: SceneWorld) -> None:
    """Register the built-in world tools, each bound to *world*."""
    registry.register(
        ToolDescriptor(
            name="create_object",
            description="Creates a simple geometric object in the 3D world.",
            handler=lambda params: create_object(world, params),
            parameters=CREATE_OBJECT_SCHEMA,
        )
    )
    registry.register(
        ToolDescriptor(
            name="change_ground_color",
            description="Changes the color of the ground plane.",
            handler=lambda params: change_ground_color(world, params),
            parameters=CHANGE_GROUND_COLOR_SCHEMA,
        )
    )
    registry.register(
        ToolDescriptor(
            name="list_objects",
            description=(
                "Lists the names and types of objects currently in the scene "
                "(excluding player and ground)."
            ),
            handler=lambda params: list_objects(world, params),
        )
    )
    logger.debug("Registered built-in world tools: %s", registry.names())
