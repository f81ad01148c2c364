"""Tests for room source resolution."""

from pathlib import Path

import pytest

from dungeon.generation.params import GenerationParams
from dungeon.rooms.composite import CompositeRoomSource
from dungeon.rooms.procedural import ProceduralRoomSource
from dungeon.rooms.resolver import resolve_room_sources
from dungeon.rooms.template import TemplateRoomSource
from dungeon.tiled.map import TILES_LAYER, TileMap

DEFAULT_ROLES = ("spawn", "boss", "treasure", "standard")


def write_room(path: Path, size: int = 10) -> None:
    tile_map = TileMap(size, size)
    layer = tile_map.add_tile_layer(TILES_LAYER)
    layer.fill(2)
    layer.fill_rect(1, 1, size - 2, size - 2, 1)
    tile_map.to_tmx(path)


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "templates"
    directory.mkdir()
    write_room(directory / "boss_arena.tmx")
    write_room(directory / "hall.tmx")
    write_room(directory / "vault.tmx")
    return directory


class TestResolveRoomSources:
    def test_defaults_are_shared_procedural(self) -> None:
        table = resolve_room_sources(GenerationParams())
        assert isinstance(table.procedural, ProceduralRoomSource)
        for role in DEFAULT_ROLES:
            assert role in table.roles()
            assert table[role] is table.procedural

    def test_procedural_uses_params(self) -> None:
        params = GenerationParams(cell_size=8, corridors={"width": 3}, tiles={"floor": 10, "wall": 11})
        procedural = resolve_room_sources(params).procedural
        assert procedural.cell_size == 8
        assert procedural.door_width == 3
        assert (procedural.floor_tile, procedural.wall_tile) == (10, 11)

    def test_unknown_role_falls_back(self) -> None:
        table = resolve_room_sources(GenerationParams())
        assert "secret" not in table.roles()
        assert table["secret"] is table.procedural

    def test_template_role_from_directory(self, templates_dir: Path) -> None:
        params = GenerationParams(
            templates_dir=str(templates_dir),
            room_types={"boss": {"count": "1", "size": "5x5", "source": "template"}},
        )
        table = resolve_room_sources(params)
        assert isinstance(table["boss"], TemplateRoomSource)
        assert table["standard"] is table.procedural

    def test_template_role_from_files(self, templates_dir: Path) -> None:
        params = GenerationParams(
            templates_dir=str(templates_dir),
            room_types={"treasure": {"count": "1-2", "template_files": ["vault.tmx"]}},
        )
        source = resolve_room_sources(params)["treasure"]
        assert isinstance(source, TemplateRoomSource)
        assert source.template_count("treasure") == 1

    def test_template_role_without_templates_falls_back(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        params = GenerationParams(
            templates_dir=str(tmp_path / "missing"),
            room_types={"boss": {"source": "template"}},
        )
        table = resolve_room_sources(params)
        assert table["boss"] is table.procedural
        assert "template-backed" in caplog.text

    def test_mixed_role_blends(self, templates_dir: Path) -> None:
        params = GenerationParams(
            templates_dir=str(templates_dir),
            room_types={"standard": {"count": "rest", "source": "mixed", "weight_template": 0.25}},
        )
        source = resolve_room_sources(params)["standard"]
        assert isinstance(source, CompositeRoomSource)
        weights = [weight for _, weight in source.sources]
        assert weights == [0.75, 0.25]

    def test_mixed_role_with_only_templates_and_none_loaded(self, tmp_path: Path) -> None:
        params = GenerationParams(
            templates_dir=str(tmp_path),
            room_types={"boss": {"source": "mixed", "weight_template": 1.0}},
        )
        table = resolve_room_sources(params)
        assert table["boss"] is table.procedural

    @pytest.mark.parametrize("size", [7, 12])
    def test_templates_not_filling_the_cell_are_not_loaded(self, tmp_path: Path, size: int) -> None:
        directory = tmp_path / "odd"
        directory.mkdir()
        write_room(directory / "boss.tmx", size=size)
        params = GenerationParams(
            templates_dir=str(directory),
            room_types={"boss": {"source": "template"}},
        )
        table = resolve_room_sources(params)
        assert table["boss"] is table.procedural

    def test_directory_source_is_shared(self, templates_dir: Path) -> None:
        params = GenerationParams(
            templates_dir=str(templates_dir),
            room_types={
                "boss": {"source": "template"},
                "standard": {"count": "rest", "source": "template"},
            },
        )
        table = resolve_room_sources(params)
        assert table["boss"] is table["standard"]
