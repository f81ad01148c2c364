"""Room blueprints loaded from pre-authored TMX template files."""

import logging
import random
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

import numpy as np

from core.types import Edge, RoomRole
from dungeon.rooms.blueprint import DoorSlot, RoomBlueprint
from dungeon.tiled.map import DOORS_GROUP, TILES_LAYER, TileMap
from dungeon.tiled.objects import ObjectGroup

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".tmx"


def infer_role_from_filename(filepath: str | Path) -> str:
    """Infer a room role from a template file name (case-insensitive substring match)."""
    stem = Path(filepath).stem.lower()
    for role in (RoomRole.SPAWN, RoomRole.BOSS, RoomRole.TREASURE):
        if role.value in stem:
            return role.value
    return RoomRole.STANDARD.value


def find_passable_runs(line: np.ndarray, passable: Iterable[int]) -> list[tuple[int, int]]:
    """Find maximal runs of passable tiles along a boundary line.

    Args:
        line: One-dimensional array of tile ids
        passable: Tile ids that count as walkable (floor and door)

    Returns:
        List of (start, length) tuples in order along the line
    """
    mask = np.isin(line, list(passable))
    runs: list[tuple[int, int]] = []
    run_start = -1

    for i, is_passable in enumerate(mask):
        if is_passable:
            if run_start < 0:
                run_start = i
        elif run_start >= 0:
            runs.append((run_start, i - run_start))
            run_start = -1

    if run_start >= 0:
        runs.append((run_start, len(mask) - run_start))

    return runs


def detect_door_slots(tiles: np.ndarray, passable: Iterable[int]) -> list[DoorSlot]:
    """Auto-detect door slots from floor/door runs on the four boundary lines."""
    passable = list(passable)
    boundaries = (
        (Edge.NORTH, tiles[0, :]),
        (Edge.SOUTH, tiles[-1, :]),
        (Edge.WEST, tiles[:, 0]),
        (Edge.EAST, tiles[:, -1]),
    )

    slots = []
    for edge, line in boundaries:
        for start, length in find_passable_runs(line, passable):
            slots.append(DoorSlot(edge, start, length))
    return slots


def door_slots_from_objects(group: ObjectGroup, tile_map: TileMap) -> list[DoorSlot]:
    """Convert rectangle objects lying on the map boundary into door slots.

    Pixel coordinates are converted to tiles. Point objects and rectangles that
    do not touch a boundary are ignored.
    """
    slots = []

    for obj in group.objects:
        if obj.is_point:
            continue

        tile_x = int(obj.x // tile_map.tile_width)
        tile_y = int(obj.y // tile_map.tile_height)
        tiles_w = int(obj.width // tile_map.tile_width)
        tiles_h = int(obj.height // tile_map.tile_height)

        if tile_y == 0:
            edge, position, width = Edge.NORTH, tile_x, tiles_w
        elif tile_y + tiles_h >= tile_map.height:
            edge, position, width = Edge.SOUTH, tile_x, tiles_w
        elif tile_x == 0:
            edge, position, width = Edge.WEST, tile_y, tiles_h
        elif tile_x + tiles_w >= tile_map.width:
            edge, position, width = Edge.EAST, tile_y, tiles_h
        else:
            continue

        slots.append(DoorSlot(edge, position, max(1, width)))

    return slots


class TemplateRoomSource:
    """Serves room blueprints loaded from TMX templates.

    Each role owns a finite pool. The first request for a role shuffles a copy
    of the pool with the shared generator; every request pops one blueprint
    until the pool runs dry, after which None is returned until ``reset()``.
    """

    def __init__(
        self,
        floor_tile: int,
        door_tile: int,
        room_size: int | None = None,
    ) -> None:
        """Initialize an empty template source.

        Args:
            floor_tile: Floor tile id used for door auto-detection
            door_tile: Door tile id used for door auto-detection
            room_size: Required template width and height in tiles (the layout cell
                size); templates of any other size are skipped
        """
        self.floor_tile = floor_tile
        self.door_tile = door_tile
        self.room_size = room_size

        self._blueprints: dict[str, list[RoomBlueprint]] = {}
        self._queues: dict[str, list[RoomBlueprint]] = {}

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        floor_tile: int,
        door_tile: int,
        type_mapping: Mapping[str, Sequence[str]] | None = None,
        room_size: int | None = None,
    ) -> "TemplateRoomSource":
        """Load every ``*.tmx`` template in a directory.

        Args:
            directory: Directory containing templates (a missing directory yields
                an empty source)
            floor_tile: Floor tile id
            door_tile: Door tile id
            type_mapping: Optional role -> file names mapping. A file is offered
                to every role whose list names it; an empty list means every
                file. Files matched by no role keep their inferred role.
            room_size: Required template width and height in tiles

        Returns:
            The loaded TemplateRoomSource
        """
        source = cls(floor_tile, door_tile, room_size)
        directory = Path(directory)

        if not directory.is_dir():
            logger.debug(f"Templates directory {directory} not found, no templates loaded")
            return source

        for path in sorted(directory.glob(f"*{TEMPLATE_SUFFIX}")):
            blueprint = source.load_template(path)
            if blueprint is None:
                continue
            for role in _applicable_roles(path, blueprint.role, type_mapping):
                source.add_blueprint(blueprint.with_role(role))

        logger.debug(f"Loaded templates from {directory}: {source.pool_sizes()}")
        return source

    @classmethod
    def from_files(
        cls,
        files: Iterable[str | Path],
        role: str,
        floor_tile: int,
        door_tile: int,
        room_size: int | None = None,
    ) -> "TemplateRoomSource":
        """Load an explicit list of template files, all tagged with one role."""
        source = cls(floor_tile, door_tile, room_size)

        for path in files:
            path = Path(path)
            if not path.is_file():
                logger.warning(f"Template file {path} not found, skipping")
                continue
            blueprint = source.load_template(path, role)
            if blueprint is not None:
                source.add_blueprint(blueprint)

        return source

    def load_template(self, path: str | Path, role: str | None = None) -> RoomBlueprint | None:
        """Load a single template file into a blueprint.

        Malformed or unsuitable files are logged and skipped.

        Args:
            path: Path to the TMX file
            role: Role override; inferred from the file name when omitted

        Returns:
            The blueprint, or None if the file was skipped
        """
        path = Path(path)
        try:
            tile_map = TileMap.from_tmx(path)
            layer = tile_map.get_tile_layer(TILES_LAYER)
            if layer is None:
                raise KeyError(f"no '{TILES_LAYER}' layer")

            size = self.room_size
            if size is not None and (tile_map.width != size or tile_map.height != size):
                raise ValueError(
                    f"template is {tile_map.width}x{tile_map.height}, "
                    f"rooms must fill the {size}x{size} cell"
                )

            tiles = layer.data.copy()
            doors = tile_map.get_object_group(DOORS_GROUP)
            if doors is not None and len(doors) > 0:
                door_slots = door_slots_from_objects(doors, tile_map)
            else:
                door_slots = detect_door_slots(tiles, (self.floor_tile, self.door_tile))

            return RoomBlueprint(
                tile_map.width,
                tile_map.height,
                tiles,
                role or infer_role_from_filename(path),
                tuple(door_slots),
                path.stem,
            )
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"Skipping template {path}: {e}")
            return None

    def add_blueprint(self, blueprint: RoomBlueprint) -> None:
        self._blueprints.setdefault(blueprint.role, []).append(blueprint)

    def template_count(self, role: str) -> int:
        return len(self._blueprints.get(role, []))

    def pool_sizes(self) -> dict[str, int]:
        return {role: len(pool) for role, pool in self._blueprints.items()}

    def can_provide(self, role: str) -> bool:
        return self.template_count(role) > 0

    def next_blueprint(self, role: str, rng: random.Random) -> RoomBlueprint | None:
        if not self.can_provide(role):
            return None

        if role not in self._queues:
            queue = list(self._blueprints[role])
            rng.shuffle(queue)
            self._queues[role] = queue

        queue = self._queues[role]
        if not queue:
            return None
        return queue.pop(0)

    def reset(self) -> None:
        self._queues.clear()


def _applicable_roles(
    path: Path,
    inferred_role: str,
    type_mapping: Mapping[str, Sequence[str]] | None,
) -> list[str]:
    if type_mapping is None:
        return [inferred_role]

    roles = [role for role, files in type_mapping.items() if not files or path.name in files]
    return roles or [inferred_role]
