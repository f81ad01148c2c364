from enum import Enum, IntEnum
from typing import NewType

# IDs
CellID = NewType("CellID", int)
ObjectID = NewType("ObjectID", int)

# Grid coordinates (x, y), in cells or tiles depending on context
GridPos = tuple[int, int]


class Edge(IntEnum):
    """Cardinal edge of a cell or room. Values index fixed 4-slot link arrays."""

    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3

    @property
    def opposite(self) -> "Edge":
        return Edge((self.value + 2) % 4)

    @property
    def delta(self) -> tuple[int, int]:
        """Grid step (dx, dy) when crossing this edge. North is -y."""
        return _EDGE_DELTAS[self]


_EDGE_DELTAS: dict[Edge, tuple[int, int]] = {
    Edge.NORTH: (0, -1),
    Edge.EAST: (1, 0),
    Edge.SOUTH: (0, 1),
    Edge.WEST: (-1, 0),
}


class RoomRole(str, Enum):
    """Topological role of a room in the layout."""

    SPAWN = "spawn"
    BOSS = "boss"
    TREASURE = "treasure"
    STANDARD = "standard"


DEFAULT_ROLES: tuple[RoomRole, ...] = (
    RoomRole.SPAWN,
    RoomRole.BOSS,
    RoomRole.TREASURE,
    RoomRole.STANDARD,
)


class ExteriorMode(str, Enum):
    """How map area outside of rooms is treated."""

    WALLS = "walls"
    VOID = "void"


class RoomSourceKind(str, Enum):
    """Kind of room source a role is served by."""

    PROCEDURAL = "procedural"
    TEMPLATE = "template"
    MIXED = "mixed"
