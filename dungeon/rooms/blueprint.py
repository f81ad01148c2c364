"""Room blueprints: the unit of content exchanged between room sources and assembly."""

from collections.abc import Iterable
from dataclasses import dataclass, replace

import numpy as np

from core.types import Edge


@dataclass(frozen=True)
class DoorSlot:
    """A potential door location on a room edge.

    Attributes:
        edge: Edge the slot lies on
        position: Offset along the edge in tiles from the top-left corner
            (from the left for North/South, from the top for East/West)
        width: Opening width in tiles
    """

    edge: Edge
    position: int
    width: int

    @classmethod
    def centered(cls, edge: Edge, edge_length: int, width: int) -> "DoorSlot":
        return cls(edge, (edge_length - width) // 2, width)


@dataclass(frozen=True, eq=False)
class RoomBlueprint:
    """Self-contained room: a tile patch, declared door slots and a role tag.

    ``tiles`` is indexed ``[y, x]`` and must have shape (height, width). The array
    is stored read-only; blueprints are never mutated after construction.
    """

    width: int
    height: int
    tiles: np.ndarray
    role: str
    door_slots: tuple[DoorSlot, ...] = ()
    name: str | None = None

    def __post_init__(self) -> None:
        tiles = np.array(self.tiles, dtype=np.int32)
        if tiles.ndim != 2 or tiles.shape != (self.height, self.width):
            raise ValueError(
                f"Tile array shape {tiles.shape} doesn't match specified size "
                f"{self.width}x{self.height} (expected ({self.height}, {self.width}))"
            )
        tiles.flags.writeable = False
        object.__setattr__(self, "tiles", tiles)
        object.__setattr__(self, "door_slots", tuple(self.door_slots))

    def slots_on_edge(self, edge: Edge) -> list[DoorSlot]:
        return [slot for slot in self.door_slots if slot.edge == edge]

    def has_slot_on_edge(self, edge: Edge) -> bool:
        return any(slot.edge == edge for slot in self.door_slots)

    def can_satisfy_edges(self, required_edges: Iterable[Edge]) -> bool:
        """True if every required edge has at least one door slot."""
        return all(self.has_slot_on_edge(edge) for edge in required_edges)

    def with_role(self, role: str) -> "RoomBlueprint":
        """Return this blueprint tagged with another role (tiles are shared)."""
        if role == self.role:
            return self
        return replace(self, role=role)
