"""Tests for dungeon assembly passes."""

import numpy as np
import pytest

from core.types import Edge, ExteriorMode
from dungeon.generation.assembler import DungeonAssembler, PlacedRoom
from dungeon.generation.params import TileIds
from dungeon.rooms.blueprint import RoomBlueprint
from dungeon.rooms.procedural import ProceduralRoomSource
from dungeon.tiled.map import ROOMS_GROUP, SPAWNS_GROUP, TILES_LAYER, TileMap
from dungeon.tiled.objects import Point, Rect

TILES = TileIds()
CELL = 10


def room(x: int, y: int, role: str, door_width: int = 1) -> PlacedRoom:
    blueprint = ProceduralRoomSource(CELL, TILES.floor, TILES.wall, door_width).generate(role)
    return PlacedRoom(x, y, blueprint)


def two_rooms_east_west() -> list[PlacedRoom]:
    a = room(0, 0, "spawn")
    b = room(1, 0, "boss")
    a.link_neighbor(Edge.EAST, b)
    return [a, b]


def assemble(
    rooms: list[PlacedRoom],
    grid: tuple[int, int] = (3, 3),
    exterior: ExteriorMode = ExteriorMode.WALLS,
    door_width: int = 1,
) -> TileMap:
    assembler = DungeonAssembler(TILES, CELL, door_width)
    return assembler.assemble(rooms, grid[0], grid[1], exterior)


def tiles_of(tile_map: TileMap) -> np.ndarray:
    layer = tile_map.get_tile_layer(TILES_LAYER)
    assert layer is not None
    return layer.data


class TestPlacedRoom:
    def test_link_neighbor_is_mutual(self) -> None:
        a, b = two_rooms_east_west()
        assert a.neighbors == {Edge.EAST: b}
        assert b.neighbors == {Edge.WEST: a}
        assert a.role == "spawn"
        assert b.grid_position == (1, 0)


class TestDungeonAssembler:
    def test_map_size_and_groups(self) -> None:
        tile_map = assemble(two_rooms_east_west(), grid=(4, 3))
        assert (tile_map.width, tile_map.height) == (40, 30)
        assert (tile_map.tile_width, tile_map.tile_height) == (16, 16)
        assert [layer.name for layer in tile_map.layers] == [TILES_LAYER]
        assert [group.name for group in tile_map.object_groups] == [ROOMS_GROUP, SPAWNS_GROUP]

    def test_walls_exterior_prefills(self) -> None:
        data = tiles_of(assemble(two_rooms_east_west()))
        assert not np.any(data == 0)
        assert np.all(data[20:, :] == TILES.wall)

    def test_blueprint_copied_at_cell_offset(self) -> None:
        data = tiles_of(assemble(two_rooms_east_west()))
        assert data[1, 1] == TILES.floor
        assert data[1, 11] == TILES.floor
        assert data[0, 10] == TILES.wall

    def test_door_carved_on_both_sides(self) -> None:
        data = tiles_of(assemble(two_rooms_east_west()))
        assert data[5, 9] == TILES.door
        assert data[5, 10] == TILES.door
        assert np.count_nonzero(data == TILES.door) == 2

    def test_vertical_door(self) -> None:
        a = room(1, 1, "spawn")
        b = room(1, 0, "standard")
        a.link_neighbor(Edge.NORTH, b)
        data = tiles_of(assemble([a, b]))
        assert data[10, 15] == TILES.door
        assert data[9, 15] == TILES.door
        assert np.count_nonzero(data == TILES.door) == 2

    @pytest.mark.parametrize(
        ("door_width", "rows"),
        [(1, [5]), (2, [4, 5]), (3, [4, 5, 6]), (4, [3, 4, 5, 6])],
    )
    def test_door_width_offsets(self, door_width: int, rows: list[int]) -> None:
        data = tiles_of(assemble(two_rooms_east_west(), door_width=door_width))
        door_rows = sorted(int(y) for y in np.nonzero(data[:, 9] == TILES.door)[0])
        assert door_rows == rows

    def test_door_count_monotonic_in_width(self) -> None:
        counts = [
            np.count_nonzero(tiles_of(assemble(two_rooms_east_west(), door_width=w)) == TILES.door)
            for w in range(1, 9)
        ]
        assert counts == sorted(counts)

    def test_each_pair_carved_once(self) -> None:
        a, b = two_rooms_east_west()
        assembler = DungeonAssembler(TILES, CELL)
        tile_map = TileMap(30, 30)
        layer = tile_map.add_tile_layer(TILES_LAYER)
        assert assembler._place_all_doors(layer, [a, b]) == 1

    def test_void_exterior_wall_shell(self) -> None:
        """Test that void leaves untouched cells empty and shells carved tiles with walls."""
        tiles = np.zeros((CELL, CELL), dtype=np.int32)
        tiles[4:6, 4:6] = TILES.floor
        blueprint = RoomBlueprint(CELL, CELL, tiles, "spawn")

        data = tiles_of(assemble([PlacedRoom(1, 1, blueprint)], exterior=ExteriorMode.VOID))
        assert data[15, 15] == TILES.floor
        assert data[13, 13] == TILES.wall
        assert data[16, 16] == TILES.wall
        assert data[12, 12] == 0
        assert data[0, 0] == 0
        assert np.count_nonzero(data == TILES.wall) == 16 - 4

    def test_void_exterior_keeps_procedural_rooms_intact(self) -> None:
        data = tiles_of(assemble(two_rooms_east_west(), exterior=ExteriorMode.VOID))
        assert data[25, 25] == 0
        assert data[0, 0] == TILES.wall
        assert data[5, 9] == TILES.door

    def test_room_objects(self) -> None:
        tile_map = assemble(two_rooms_east_west())
        rooms = tile_map.get_object_group(ROOMS_GROUP)
        assert rooms is not None
        assert [obj.name for obj in rooms.objects] == ["Room_spawn_0", "Room_boss_1"]
        assert tile_map.room_bounds("Room_boss_1") == Rect(160, 0, 160, 160)
        assert rooms.objects[1].get_property("grid_x") == "1"
        assert rooms.objects[1].get_property("grid_y") == "0"
        assert rooms.objects[1].get_property("blueprint") is None

    def test_room_rectangles_are_disjoint(self) -> None:
        rooms = [room(x, y, "standard") for x in range(3) for y in range(3)]
        bounds = assemble(rooms).all_room_bounds()
        for i, a in enumerate(bounds):
            for b in bounds[i + 1 :]:
                assert not a.intersects(b)

    def test_spawn_points(self) -> None:
        a, b = two_rooms_east_west()
        c = room(0, 1, "treasure")
        d = room(2, 0, "treasure")
        a.link_neighbor(Edge.SOUTH, c)
        b.link_neighbor(Edge.EAST, d)
        tile_map = assemble([a, b, c, d])

        assert tile_map.spawn_point("PlayerSpawn") == Point(80, 80)
        assert tile_map.spawn_point("BossSpawn") == Point(240, 80)
        assert tile_map.spawn_point("TreasureSpawn_0") == Point(80, 240)
        assert tile_map.spawn_point("TreasureSpawn_1") == Point(400, 80)
        spawns = tile_map.get_object_group(SPAWNS_GROUP)
        assert spawns is not None
        assert all(obj.is_point for obj in spawns.objects)

    def test_player_spawn_falls_back_to_first_room(self) -> None:
        tile_map = assemble([room(2, 2, "standard"), room(0, 0, "standard")])
        assert tile_map.spawn_point("PlayerSpawn") == Point(400, 400)
        assert tile_map.spawn_point("BossSpawn") is None

    def test_no_rooms(self) -> None:
        tile_map = assemble([])
        spawns = tile_map.get_object_group(SPAWNS_GROUP)
        assert spawns is not None
        assert len(spawns) == 0
