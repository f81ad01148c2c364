"""Dungeon generation pipeline: layout growth, role assignment, room sourcing, assembly."""

import logging
import random
from collections import Counter

from core.types import RoomRole
from dungeon.generation.assembler import DungeonAssembler, PlacedRoom
from dungeon.generation.params import GenerationParams
from dungeon.layout.cell import LayoutGraph
from dungeon.layout.grower import LayoutGrower
from dungeon.layout.roles import RoomTypeAssigner, TreasureCountFn
from dungeon.rooms.resolver import RoomSourceTable, resolve_room_sources
from dungeon.tiled.map import TileMap

logger = logging.getLogger(__name__)


class DungeonGenerator:
    """Generates a dungeon tile map from validated parameters.

    Room sources (including template files) are resolved once, on construction.
    Each ``generate()`` call creates a fresh random generator from the seed and
    threads it through growth, role assignment and blueprint sampling in that
    order, so the same parameters and seed always produce the same map.
    """

    def __init__(self, params: GenerationParams) -> None:
        """Initialize the dungeon generator.

        Args:
            params: Generation parameters (Pydantic model, validates on instantiation)
        """
        self.params = params
        self.sources: RoomSourceTable = resolve_room_sources(params)
        self.assembler = DungeonAssembler(
            params.tiles,
            params.cell_size,
            params.door_width,
            params.tile_size,
        )
        self.layout: LayoutGraph | None = None

    def generate(self) -> TileMap:
        """Generate a complete dungeon.

        Returns:
            Assembled TileMap with map-level properties set
        """
        params = self.params
        rng = random.Random(params.seed)
        self.sources.reset()

        graph = self.grow_layout(rng)
        RoomTypeAssigner(rng, self._treasure_count(rng)).assign(graph)
        rooms = self.place_rooms(graph, rng)

        tile_map = self.assembler.assemble(
            rooms, params.grid_width, params.grid_height, params.exterior
        )
        self._set_map_properties(tile_map)
        self.layout = graph

        roles = Counter(room.role for room in rooms)
        logger.info(
            f"Generated dungeon '{params.name}' (seed={params.seed}): "
            f"{params.grid_width}x{params.grid_height} cells, {len(rooms)} rooms, "
            f"roles={dict(roles)}"
        )
        return tile_map

    def grow_layout(self, rng: random.Random) -> LayoutGraph:
        """Grow the room layout, retrying while it is below the minimum room count.

        Every attempt draws a fresh target from the room count range. The largest
        layout grown is kept.

        Args:
            rng: Shared random generator

        Returns:
            The grown LayoutGraph
        """
        params = self.params
        best: LayoutGraph | None = None

        for attempt in range(params.layout_attempts):
            target = params.room_count.draw(rng)
            grower = LayoutGrower(params.grid_width, params.grid_height, target, rng)
            graph = grower.grow()

            if best is None or len(graph) > len(best):
                best = graph
            if len(best) >= params.room_count.min:
                break
            logger.debug(
                f"Layout attempt {attempt + 1}/{params.layout_attempts} grew "
                f"{len(graph)} cells, below minimum {params.room_count.min}"
            )

        if len(best) < params.room_count.min:
            logger.warning(
                f"Layout has {len(best)} rooms, below the configured minimum "
                f"{params.room_count.min} after {params.layout_attempts} attempt(s)"
            )
        return best

    def place_rooms(self, graph: LayoutGraph, rng: random.Random) -> list[PlacedRoom]:
        """Draw one blueprint per cell, in cell order, and link neighbouring rooms.

        A source that has run dry is replaced by the shared procedural source.

        Args:
            graph: Layout graph with roles assigned
            rng: Shared random generator

        Returns:
            Placed rooms, in the same order as the graph's cells
        """
        rooms: list[PlacedRoom] = []

        for cell in graph:
            source = self.sources[cell.role]
            blueprint = source.next_blueprint(cell.role, rng)
            if blueprint is None:
                logger.debug(
                    f"No blueprint left for role '{cell.role}' at {cell.position}, "
                    f"using procedural room"
                )
                blueprint = self.sources.procedural.next_blueprint(cell.role, rng)
            rooms.append(PlacedRoom(cell.x, cell.y, blueprint.with_role(cell.role)))

        for cell, room in zip(graph, rooms):
            for edge, neighbor_id in cell.linked_edges():
                room.link_neighbor(edge, rooms[neighbor_id])

        return rooms

    def _treasure_count(self, rng: random.Random) -> TreasureCountFn | int:
        treasure = self.params.room_types.get(RoomRole.TREASURE.value)
        if treasure is None:
            return 0
        if treasure.is_rest:
            return lambda dead_ends: dead_ends
        return lambda dead_ends: treasure.count.draw(rng)

    def _set_map_properties(self, tile_map: TileMap) -> None:
        params = self.params
        tile_map.properties["name"] = params.name
        if params.seed is not None:
            tile_map.properties["seed"] = str(params.seed)
        tile_map.properties["cell_size"] = str(params.cell_size)
        for tile_name, tile_id in params.tiles.model_dump().items():
            tile_map.properties[f"tile_{tile_name}"] = str(tile_id)


def generate_dungeon(params: GenerationParams) -> TileMap:
    """Generate a dungeon tile map in one call."""
    return DungeonGenerator(params).generate()
