"""
In-memory world the tools act on.

The renderer is not part of this package; :class:`SceneWorld` keeps just enough scene state (named
entities with shape, size, colour and position) for tools to mutate and inspect.  A presentation
layer can read :meth:`SceneWorld.snapshot` to draw it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import (
    asdict,
    dataclass,
    field,
)
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
)

logger = logging.getLogger(__name__)

PLAYER_NAME = "player"
GROUND_NAME = "ground"
DEFAULT_GROUND_COLOR = "#556b2f"
SHAPES = ("cube", "sphere", "cylinder", "cone")
MIN_SIZE = 0.1

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
NAMED_COLORS = frozenset(
    {
        "black", "white", "gray", "grey", "silver", "red", "maroon", "orange", "orangered",
        "gold", "yellow", "olive", "lime", "green", "darkgreen", "teal", "cyan", "aqua", "blue",
        "navy", "skyblue", "purple", "violet", "magenta", "fuchsia", "pink", "brown", "beige",
        "tan", "coral", "salmon", "turquoise", "indigo", "khaki", "lavender", "crimson",
    }
)


class WorldError(ValueError):
    """Raised when a world operation receives an unusable value."""


def normalize_color(color: str) -> str:
    """Return *color* lower-cased if it is a known CSS name or a ``#rgb``/``#rrggbb`` code."""
    value = str(color).strip().lower()
    if value in NAMED_COLORS or _HEX_COLOR_RE.match(value):
        return value
    raise WorldError(
        f"Invalid color value \"{color}\". Please use standard color names or hex codes "
        "(e.g., 'blue', '#00ff00')."
    )


@dataclass
class Vector3:
    """World coordinates."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Entity:
    """A named thing in the scene."""

    name: str
    kind: str
    color: str
    size: float = 1.0
    position: Vector3 = field(default_factory=Vector3)
    reserved: bool = False


class SceneWorld:
    """Scene holding the ground plane, the player, and user-created objects."""

    def __init__(self, sound_hook: Optional[Callable[[str], None]] = None) -> None:
        self._sound_hook = sound_hook
        self.ground = Entity(GROUND_NAME, "plane", DEFAULT_GROUND_COLOR, 100.0, reserved=True)
        self.player = Entity(
            PLAYER_NAME, "capsule", "orangered", 1.0, Vector3(0.0, 0.9, 0.0), reserved=True
        )
        self._objects: Dict[str, Entity] = {}

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #
    def spawn_object(
        self, shape: str, position: Vector3, size: float = 1.0, color: str = "gray"
    ) -> Entity:
        """Add a primitive and return it; the name is derived from shape and colour."""
        shape = (shape or "cube").lower()
        if shape not in SHAPES:
            shape = "cube"
        color = normalize_color(color)
        size = max(MIN_SIZE, float(size or 1.0))

        base_name = f"{shape}_{color.replace('#', '')}"
        name, counter = base_name, 1
        while self._name_taken(name):
            counter += 1
            name = f"{base_name}_{counter}"

        entity = Entity(name, shape, color, size, position)
        self._objects[name] = entity
        logger.info("Spawned %s at (%s, %s, %s)", name, position.x, position.y, position.z)
        self.play_sound("create")
        return entity

    def set_ground_color(self, color: str) -> str:
        self.ground.color = normalize_color(color)
        self.play_sound("modify")
        return self.ground.color

    def list_entities(self) -> List[Entity]:
        """User-created objects, excluding the player and the ground."""
        return list(self._objects.values())

    def find_entity(self, name: str) -> Optional[Entity]:
        """
        Resolve *name* case-insensitively.

        The player and the ground are only returned when asked for by their reserved names, so a
        user object called "Player" cannot shadow the avatar and vice versa.
        """
        wanted = str(name).lower()
        if wanted == PLAYER_NAME:
            return self.player
        if wanted == GROUND_NAME:
            return self.ground
        for entity in self._objects.values():
            if entity.name.lower() == wanted:
                return entity
        return None

    def remove_entity(self, name: str) -> bool:
        entity = self.find_entity(name)
        if entity is None or entity.reserved:
            return False
        del self._objects[entity.name]
        return True

    def play_sound(self, sound_name: str) -> None:
        if self._sound_hook is not None:
            self._sound_hook(sound_name)

    def _name_taken(self, name: str) -> bool:
        return name in self._objects or name in (PLAYER_NAME, GROUND_NAME)

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #
    def capabilities(self) -> Dict[str, Any]:
        """The fixed set of names tool code may use."""
        return {
            "scene": self,
            "player": self.player,
            "Vector3": Vector3,
            "spawn_object": self.spawn_object,
            "set_ground_color": self.set_ground_color,
            "list_entities": self.list_entities,
            "find_entity": self.find_entity,
            "remove_entity": self.remove_entity,
            "play_sound": self.play_sound,
        }

    def snapshot(self) -> Dict[str, Any]:
        return {
            "ground": asdict(self.ground),
            "player": asdict(self.player),
            "objects": [asdict(entity) for entity in self._objects.values()],
        }
