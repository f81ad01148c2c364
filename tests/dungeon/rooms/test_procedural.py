"""Tests for procedurally generated rooms."""

import random

import numpy as np
import pytest

from core.types import Edge
from dungeon.rooms.blueprint import DoorSlot
from dungeon.rooms.procedural import ProceduralRoomSource

FLOOR, WALL = 1, 2


class TestProceduralRoomSource:
    @pytest.fixture
    def source(self) -> ProceduralRoomSource:
        return ProceduralRoomSource(10, FLOOR, WALL, door_width=2)

    def test_wall_ring_and_floor_interior(self, source: ProceduralRoomSource) -> None:
        blueprint = source.next_blueprint("standard", random.Random(0))
        tiles = blueprint.tiles

        assert (blueprint.width, blueprint.height) == (10, 10)
        assert np.all(tiles[0, :] == WALL)
        assert np.all(tiles[-1, :] == WALL)
        assert np.all(tiles[:, 0] == WALL)
        assert np.all(tiles[:, -1] == WALL)
        assert np.all(tiles[1:-1, 1:-1] == FLOOR)

    def test_centered_door_slot_per_edge(self, source: ProceduralRoomSource) -> None:
        blueprint = source.generate("boss")
        assert blueprint.role == "boss"
        assert blueprint.door_slots == tuple(DoorSlot(edge, 4, 2) for edge in Edge)

    def test_provides_every_role(self, source: ProceduralRoomSource) -> None:
        for role in ("spawn", "boss", "treasure", "standard", "custom"):
            assert source.can_provide(role)

    def test_consumes_no_randomness(self, source: ProceduralRoomSource) -> None:
        rng = random.Random(7)
        state = rng.getstate()
        for _ in range(3):
            source.next_blueprint("standard", rng)
        assert rng.getstate() == state

    def test_never_exhausts(self, source: ProceduralRoomSource) -> None:
        rng = random.Random(0)
        assert all(source.next_blueprint("treasure", rng) is not None for _ in range(50))
        source.reset()

    def test_too_small(self) -> None:
        with pytest.raises(ValueError, match="at least 3"):
            ProceduralRoomSource(2, FLOOR, WALL)
