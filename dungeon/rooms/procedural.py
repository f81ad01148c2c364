"""Procedurally generated rectangle rooms."""

import random

import numpy as np

from core.types import Edge
from dungeon.rooms.blueprint import DoorSlot, RoomBlueprint


class ProceduralRoomSource:
    """Generates square rooms of the cell size: wall ring, floor interior, and a
    centred door slot on every edge.

    Every call produces the same structure, so no randomness is consumed.
    """

    def __init__(self, cell_size: int, floor_tile: int, wall_tile: int, door_width: int = 1) -> None:
        if cell_size < 3:
            raise ValueError(f"cell_size must be at least 3 (walls + floor), got {cell_size}")

        self.cell_size = cell_size
        self.floor_tile = floor_tile
        self.wall_tile = wall_tile
        self.door_width = door_width

    def can_provide(self, role: str) -> bool:
        return True

    def next_blueprint(self, role: str, rng: random.Random) -> RoomBlueprint:
        return self.generate(role)

    def reset(self) -> None:
        pass

    def generate(self, role: str) -> RoomBlueprint:
        """Generate a single room blueprint for the role."""
        size = self.cell_size
        tiles = np.full((size, size), self.wall_tile, dtype=np.int32)
        tiles[1:-1, 1:-1] = self.floor_tile

        door_slots = tuple(DoorSlot.centered(edge, size, self.door_width) for edge in Edge)
        return RoomBlueprint(size, size, tiles, role, door_slots)
