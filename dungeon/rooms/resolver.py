"""Resolution of the configured room sources into a total role -> source table."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from core.types import DEFAULT_ROLES, RoomSourceKind
from dungeon.rooms.composite import CompositeRoomSource
from dungeon.rooms.procedural import ProceduralRoomSource
from dungeon.rooms.source import RoomSource
from dungeon.rooms.template import TemplateRoomSource

if TYPE_CHECKING:
    from dungeon.generation.params import GenerationParams, RoomTypeParams

logger = logging.getLogger(__name__)


class RoomSourceTable:
    """Complete mapping from role to room source, built once before sampling.

    Every default role has an entry. Lookups for roles outside the table are
    served by the shared procedural source.
    """

    def __init__(self, procedural: ProceduralRoomSource, sources: dict[str, RoomSource]) -> None:
        self.procedural = procedural
        self.sources = sources

    def source_for(self, role: str) -> RoomSource:
        return self.sources.get(role, self.procedural)

    def __getitem__(self, role: str) -> RoomSource:
        return self.source_for(role)

    def roles(self) -> list[str]:
        return list(self.sources)

    def reset(self) -> None:
        """Reset sampling state of every distinct source in the table."""
        seen: set[int] = set()
        for source in [self.procedural, *self.sources.values()]:
            if id(source) not in seen:
                seen.add(id(source))
                source.reset()


class _SourceResolver:
    """Builds sources for each configured role, sharing instances where possible."""

    def __init__(self, params: "GenerationParams") -> None:
        self.params = params
        self.procedural = ProceduralRoomSource(
            params.cell_size,
            params.tiles.floor,
            params.tiles.wall,
            params.door_width,
        )
        self._directory_source: TemplateRoomSource | None = None
        self._directory_loaded = False

    def resolve(self) -> RoomSourceTable:
        sources: dict[str, RoomSource] = {}

        for role, type_params in self.params.room_types.items():
            sources[role] = self._resolve_role(role, type_params)

        for role in DEFAULT_ROLES:
            sources.setdefault(role.value, self.procedural)

        return RoomSourceTable(self.procedural, sources)

    def _resolve_role(self, role: str, type_params: "RoomTypeParams") -> RoomSource:
        kind = type_params.source_kind

        if kind == RoomSourceKind.PROCEDURAL:
            return self.procedural

        template = self._template_source(role, type_params)

        if kind == RoomSourceKind.MIXED:
            composite = CompositeRoomSource()
            composite.add_source(self.procedural, 1.0 - type_params.weight_template)
            if template is not None:
                composite.add_source(template, type_params.weight_template)
            if composite.can_provide(role):
                return composite
            logger.warning(
                f"Room type '{role}' is mixed with zero procedural weight and no templates, "
                f"using procedural rooms"
            )
            return self.procedural

        if template is None or not template.can_provide(role):
            logger.warning(
                f"Room type '{role}' is template-backed but no templates were loaded for it, "
                f"using procedural rooms"
            )
            return self.procedural
        return template

    def _template_source(self, role: str, type_params: "RoomTypeParams") -> TemplateRoomSource | None:
        """Template source for a role: its explicit file list, else the shared directory."""
        if type_params.template_files:
            base = Path(self.params.templates_dir) if self.params.templates_dir else None
            files = [base / name if base is not None else Path(name) for name in type_params.template_files]
            return TemplateRoomSource.from_files(
                files,
                role,
                self.params.tiles.floor,
                self.params.tiles.door,
                room_size=self.params.cell_size,
            )
        return self._shared_directory_source()

    def _shared_directory_source(self) -> TemplateRoomSource | None:
        if not self._directory_loaded:
            self._directory_loaded = True
            if self.params.templates_dir:
                self._directory_source = TemplateRoomSource.from_directory(
                    self.params.templates_dir,
                    self.params.tiles.floor,
                    self.params.tiles.door,
                    room_size=self.params.cell_size,
                )
        return self._directory_source


def resolve_room_sources(params: "GenerationParams") -> RoomSourceTable:
    """Resolve every configured role to exactly one room source.

    Roles default to the shared procedural source. "template" roles use their
    explicit file list or the templates directory; "mixed" roles blend the
    procedural source (weight 1 - w) with the template source (weight w).
    Default roles that are not configured map to the shared procedural source.

    Args:
        params: Validated generation parameters

    Returns:
        RoomSourceTable covering every default and configured role
    """
    table = _SourceResolver(params).resolve()
    logger.debug(
        "Resolved room sources: "
        + ", ".join(f"{role}={type(table[role]).__name__}" for role in table.roles())
    )
    return table
