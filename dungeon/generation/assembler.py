"""Assembly of placed room blueprints into a single tile map."""

import logging
from dataclasses import dataclass, field

import numpy as np
from scipy import ndimage

from core.types import Edge, ExteriorMode, RoomRole
from dungeon.generation.params import TileIds
from dungeon.rooms.blueprint import RoomBlueprint
from dungeon.tiled.layer import EMPTY_TILE, TileLayer
from dungeon.tiled.map import (
    DEFAULT_TILE_SIZE,
    ROOMS_GROUP,
    SPAWNS_GROUP,
    TILES_LAYER,
    TileMap,
)
from dungeon.tiled.objects import ObjectGroup

logger = logging.getLogger(__name__)

PLAYER_SPAWN = "PlayerSpawn"
BOSS_SPAWN = "BossSpawn"
TREASURE_SPAWN_PREFIX = "TreasureSpawn_"


@dataclass(eq=False)
class PlacedRoom:
    """A layout cell bound to its blueprint and to its neighbouring rooms."""

    grid_x: int
    grid_y: int
    blueprint: RoomBlueprint
    neighbors: dict[Edge, "PlacedRoom"] = field(default_factory=dict, repr=False)

    @property
    def role(self) -> str:
        return self.blueprint.role

    @property
    def grid_position(self) -> tuple[int, int]:
        return (self.grid_x, self.grid_y)

    def link_neighbor(self, edge: Edge, neighbor: "PlacedRoom") -> None:
        """Link this room to a neighbour on an edge, and the neighbour back."""
        self.neighbors[edge] = neighbor
        neighbor.neighbors[edge.opposite] = self


class DungeonAssembler:
    """Stitches placed rooms into a tile map in fixed, ordered passes.

    Passes: allocate, wall pre-fill (walls exterior), blueprint copy with room
    objects, door carving, wall shell (void exterior), spawn points. The
    assembler consumes no randomness.
    """

    def __init__(
        self,
        tiles: TileIds,
        cell_size: int,
        door_width: int = 1,
        tile_size: int = DEFAULT_TILE_SIZE,
    ) -> None:
        """Initialize the assembler.

        Args:
            tiles: Tile id mapping
            cell_size: Layout cell size in tiles
            door_width: Width of carved door openings in tiles
            tile_size: Tile size in pixels (for object coordinates)
        """
        self.tiles = tiles
        self.cell_size = cell_size
        self.door_width = door_width
        self.tile_size = tile_size

    def assemble(
        self,
        rooms: list[PlacedRoom],
        grid_width: int,
        grid_height: int,
        exterior: ExteriorMode = ExteriorMode.WALLS,
    ) -> TileMap:
        """Assemble placed rooms into a tile map.

        Args:
            rooms: Placed rooms with neighbour links set
            grid_width: Layout width in cells
            grid_height: Layout height in cells
            exterior: Walls pre-fills the map; void leaves it empty with a wall shell

        Returns:
            TileMap with a "Tiles" layer and "Rooms"/"Spawns" object groups
        """
        tile_map = TileMap(
            grid_width * self.cell_size,
            grid_height * self.cell_size,
            self.tile_size,
            self.tile_size,
        )
        layer = tile_map.add_tile_layer(TILES_LAYER)
        rooms_group = tile_map.add_object_group(ROOMS_GROUP)
        spawns_group = tile_map.add_object_group(SPAWNS_GROUP)

        if exterior == ExteriorMode.WALLS:
            layer.fill(self.tiles.wall)

        for room in rooms:
            self._place_room_tiles(layer, room)
            self._add_room_object(rooms_group, room)

        doors = self._place_all_doors(layer, rooms)
        logger.debug(f"Carved {doors} doors between {len(rooms)} rooms")

        if exterior == ExteriorMode.VOID:
            self._add_wall_shell(layer)

        self._add_spawn_points(spawns_group, rooms)

        return tile_map

    def room_origin(self, room: PlacedRoom) -> tuple[int, int]:
        """Top-left tile of a room's cell."""
        return (room.grid_x * self.cell_size, room.grid_y * self.cell_size)

    def room_center(self, room: PlacedRoom) -> tuple[int, int]:
        """Centre tile of a room's cell."""
        x, y = self.room_origin(room)
        half = self.cell_size // 2
        return (x + half, y + half)

    def _place_room_tiles(self, layer: TileLayer, room: PlacedRoom) -> None:
        x, y = self.room_origin(room)
        layer.paste(x, y, room.blueprint.tiles)

    def _add_room_object(self, group: ObjectGroup, room: PlacedRoom) -> None:
        x, y = self.room_origin(room)
        size = self.cell_size * self.tile_size

        obj = group.add_object(
            f"Room_{room.role}_{len(group)}",
            room.role,
            x * self.tile_size,
            y * self.tile_size,
            size,
            size,
            {"grid_x": str(room.grid_x), "grid_y": str(room.grid_y)},
        )
        if room.blueprint.name:
            obj.set_property("blueprint", room.blueprint.name)

    def _place_all_doors(self, layer: TileLayer, rooms: list[PlacedRoom]) -> int:
        """Carve one door per unordered pair of adjacent rooms.

        Returns:
            Number of doors carved
        """
        processed: set[tuple[tuple[int, int], tuple[int, int]]] = set()

        for room in rooms:
            for edge, neighbor in room.neighbors.items():
                pair = tuple(sorted((room.grid_position, neighbor.grid_position)))
                if pair in processed:
                    continue
                processed.add(pair)
                self._place_door_between(layer, room, neighbor, edge)

        return len(processed)

    def door_offsets(self) -> range:
        """Offsets from the boundary centre covered by a door of the configured width."""
        half = self.door_width // 2
        return range(-half, self.door_width - half)

    def _place_door_between(
        self,
        layer: TileLayer,
        room_a: PlacedRoom,
        room_b: PlacedRoom,
        edge_from_a: Edge,
    ) -> None:
        """Write door tiles on both sides of the boundary between two rooms."""
        ax, ay = self.room_origin(room_a)
        bx, by = self.room_origin(room_b)
        center = self.cell_size // 2
        last = self.cell_size - 1
        door = self.tiles.door

        for d in self.door_offsets():
            if edge_from_a == Edge.EAST:
                layer[ax + last, ay + center + d] = door
                layer[bx, ay + center + d] = door
            elif edge_from_a == Edge.WEST:
                layer[ax, ay + center + d] = door
                layer[bx + last, ay + center + d] = door
            elif edge_from_a == Edge.SOUTH:
                layer[ax + center + d, ay + last] = door
                layer[ax + center + d, by] = door
            else:
                layer[ax + center + d, ay] = door
                layer[ax + center + d, by + last] = door

    def _add_wall_shell(self, layer: TileLayer) -> None:
        """Turn every empty tile 8-adjacent to floor or door into wall."""
        carved = np.isin(layer.data, (self.tiles.floor, self.tiles.door))
        shell = ndimage.binary_dilation(carved, structure=np.ones((3, 3), dtype=bool))
        layer.data[shell & (layer.data == EMPTY_TILE)] = self.tiles.wall

    def _add_spawn_points(self, group: ObjectGroup, rooms: list[PlacedRoom]) -> None:
        if not rooms:
            return

        spawn_room = next((r for r in rooms if r.role == RoomRole.SPAWN.value), rooms[0])
        self._add_spawn_point(group, spawn_room, PLAYER_SPAWN, RoomRole.SPAWN.value)

        boss_room = next((r for r in rooms if r.role == RoomRole.BOSS.value), None)
        if boss_room is not None:
            self._add_spawn_point(group, boss_room, BOSS_SPAWN, RoomRole.BOSS.value)

        treasure_rooms = [r for r in rooms if r.role == RoomRole.TREASURE.value]
        for i, room in enumerate(treasure_rooms):
            self._add_spawn_point(
                group, room, f"{TREASURE_SPAWN_PREFIX}{i}", RoomRole.TREASURE.value
            )

    def _add_spawn_point(self, group: ObjectGroup, room: PlacedRoom, name: str, type: str) -> None:
        x, y = self.room_center(room)
        group.add_object(name, type, x * self.tile_size, y * self.tile_size)
