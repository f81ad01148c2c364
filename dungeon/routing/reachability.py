"""Walkability and reachability analysis of generated tile maps."""

import logging
from collections.abc import Iterable

import numpy as np
from scipy import ndimage

from dungeon.generation.assembler import PLAYER_SPAWN
from dungeon.tiled.map import ROOMS_GROUP, TILES_LAYER, TileMap

logger = logging.getLogger(__name__)

DEFAULT_FLOOR_TILE = 1
DEFAULT_DOOR_TILE = 3


def walkable_tile_ids(tile_map: TileMap) -> tuple[int, int]:
    """Floor and door tile ids, read from the map properties when recorded there."""
    floor = int(tile_map.properties.get("tile_floor", DEFAULT_FLOOR_TILE))
    door = int(tile_map.properties.get("tile_door", DEFAULT_DOOR_TILE))
    return (floor, door)


def walkable_mask(
    tile_map: TileMap,
    walkable: Iterable[int] | None = None,
    layer_name: str = TILES_LAYER,
) -> np.ndarray:
    """Boolean [y, x] mask of walkable tiles.

    Args:
        tile_map: Map to analyse
        walkable: Walkable tile ids (defaults to the map's floor and door ids)
        layer_name: Tile layer to read

    Returns:
        Boolean array, all False if the layer does not exist
    """
    layer = tile_map.get_tile_layer(layer_name)
    if layer is None:
        return np.zeros((tile_map.height, tile_map.width), dtype=bool)

    ids = list(walkable) if walkable is not None else list(walkable_tile_ids(tile_map))
    return np.isin(layer.data, ids)


def flood_walkable(
    tile_map: TileMap,
    start: tuple[int, int],
    walkable: Iterable[int] | None = None,
) -> np.ndarray:
    """4-directional flood fill over walkable tiles.

    Args:
        tile_map: Map to analyse
        start: Start tile (x, y)
        walkable: Walkable tile ids (defaults to the map's floor and door ids)

    Returns:
        Boolean [y, x] mask of tiles reachable from start (empty if start is not walkable)
    """
    mask = walkable_mask(tile_map, walkable)
    x, y = start
    if not (0 <= x < tile_map.width and 0 <= y < tile_map.height) or not mask[y, x]:
        return np.zeros_like(mask)

    labels, _ = ndimage.label(mask)
    return labels == labels[y, x]


def pixel_to_tile(tile_map: TileMap, px: float, py: float) -> tuple[int, int]:
    return (int(px // tile_map.tile_width), int(py // tile_map.tile_height))


def unreachable_rooms(tile_map: TileMap, walkable: Iterable[int] | None = None) -> list[str]:
    """Names of rooms that cannot be walked to from the player spawn.

    A room counts as reachable when any walkable tile inside its bounds lies in
    the player spawn's connected component.

    Args:
        tile_map: Generated map with "Rooms" and "Spawns" object groups
        walkable: Walkable tile ids (defaults to the map's floor and door ids)

    Returns:
        Room object names in group order; every room if there is no player spawn
    """
    rooms = tile_map.get_object_group(ROOMS_GROUP)
    if rooms is None:
        return []

    spawn = tile_map.spawn_point(PLAYER_SPAWN)
    if spawn is None:
        reached = np.zeros((tile_map.height, tile_map.width), dtype=bool)
    else:
        reached = flood_walkable(tile_map, pixel_to_tile(tile_map, spawn.x, spawn.y), walkable)

    unreachable = []
    for room in rooms.objects:
        if room.is_point:
            continue
        x0, y0 = pixel_to_tile(tile_map, room.x, room.y)
        x1, y1 = pixel_to_tile(tile_map, room.x + room.width, room.y + room.height)
        if not reached[y0:y1, x0:x1].any():
            unreachable.append(room.name)

    if unreachable:
        logger.debug(f"Unreachable rooms: {unreachable}")
    return unreachable
