"""Procedural dungeon generation module."""

from .assembler import DungeonAssembler, PlacedRoom
from .generator import DungeonGenerator, generate_dungeon
from .params import GenerationParams

__all__ = [
    "DungeonAssembler",
    "DungeonGenerator",
    "GenerationParams",
    "PlacedRoom",
    "generate_dungeon",
]
