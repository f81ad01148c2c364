"""Saving and loading generated dungeons as TMX files in a maps directory."""

import logging
import re
from pathlib import Path

from dungeon.tiled.map import TileMap

logger = logging.getLogger(__name__)

MAP_SUFFIX = ".tmx"
DEFAULT_MAP_NAME = "unnamed_map"

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9_-]+")


def sanitize_map_name(name: str) -> str:
    """Reduce a map name to a safe file stem.

    Each run of characters other than letters, digits, underscores and hyphens
    becomes one underscore, and leading or trailing underscores are dropped, so
    path separators and dots never reach the file system.
    """
    stem = _UNSAFE_RUN.sub("_", name).strip("_")
    return stem or DEFAULT_MAP_NAME


def map_path(maps_dir: str | Path, map_name: str) -> Path:
    """Path of the TMX file for a map name inside maps_dir."""
    return Path(maps_dir) / f"{sanitize_map_name(map_name)}{MAP_SUFFIX}"


def list_maps(maps_dir: str | Path) -> list[str]:
    """Names of the maps stored in maps_dir, sorted. A missing directory holds none."""
    directory = Path(maps_dir)
    if not directory.is_dir():
        return []
    return sorted(path.stem for path in directory.glob(f"*{MAP_SUFFIX}"))


def export_map(
    tile_map: TileMap,
    map_name: str,
    maps_dir: str | Path,
    overwrite: bool = False,
) -> Path:
    """Write a tile map to maps_dir, creating the directory when needed.

    Args:
        tile_map: TileMap to export
        map_name: Name for the map file (will be sanitized)
        maps_dir: Directory holding the maps
        overwrite: Replace an existing map of the same name

    Returns:
        Path of the written file

    Raises:
        ValueError: If the map file already exists and overwrite is False
        OSError: If the file cannot be written
    """
    path = map_path(maps_dir, map_name)
    if path.exists() and not overwrite:
        raise ValueError(f"Map file already exists: {path.stem}")

    tile_map.to_tmx(path)
    logger.info(f"Exported map '{path.stem}' to {path}")
    return path


def import_map(map_name: str, maps_dir: str | Path) -> TileMap:
    """Load a tile map from maps_dir.

    Raises:
        FileNotFoundError: If no map of that name exists
        ValueError: If the file is not a valid TMX map
    """
    path = map_path(maps_dir, map_name)
    if not path.is_file():
        raise FileNotFoundError(f"Map file not found: {path.stem} in {maps_dir}")

    tile_map = TileMap.from_tmx(path)
    logger.info(f"Imported map '{path.stem}' ({tile_map.width}x{tile_map.height} tiles)")
    return tile_map


def map_exists(map_name: str, maps_dir: str | Path) -> bool:
    return map_path(maps_dir, map_name).is_file()
