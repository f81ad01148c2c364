"""Pydantic models for dungeon generation parameters."""

import random
import re
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from core.types import ExteriorMode, RoomSourceKind

REST = "rest"

# Regrowth attempts while a layout stalls below the minimum room count
DEFAULT_LAYOUT_ATTEMPTS = 10

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


class IntRange(BaseModel):
    """Inclusive integer range, e.g. a room count of "8-12".

    Accepts an int, a "a-b" or "n" string, a [min, max] pair or a mapping.
    """

    min: int = Field(ge=0, description="Lower bound (inclusive)")
    max: int = Field(ge=0, description="Upper bound (inclusive)")

    @model_validator(mode="before")
    @classmethod
    def parse_scalar(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("Range must be an int, a 'min-max' string or a pair")
        if isinstance(value, int):
            return {"min": value, "max": value}
        if isinstance(value, str):
            parts = value.split("-")
            if len(parts) > 2:
                raise ValueError(f"Invalid range {value!r}, expected 'n' or 'min-max'")
            try:
                bounds = [int(part.strip()) for part in parts]
            except ValueError:
                raise ValueError(f"Invalid range {value!r}, expected 'n' or 'min-max'") from None
            return {"min": bounds[0], "max": bounds[-1]}
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError("Range pair must contain exactly 2 values")
            return {"min": value[0], "max": value[1]}
        return value

    @model_validator(mode="after")
    def check_order(self) -> "IntRange":
        if self.min > self.max:
            raise ValueError(f"Range min ({self.min}) must be <= max ({self.max})")
        return self

    def draw(self, rng: random.Random) -> int:
        """Draw a value uniformly from the range (both ends inclusive)."""
        return rng.randint(self.min, self.max)

    def __str__(self) -> str:
        return str(self.min) if self.min == self.max else f"{self.min}-{self.max}"


# A per-role count: a range to draw from, or "rest" for whatever remains
RoomCount = IntRange | Literal["rest"]


class SizeRange(BaseModel):
    """Room size bounds in tiles, from "WxH" or "WxH to WxH"."""

    min_width: int = Field(default=5, ge=3, description="Minimum width (walls + floor)")
    min_height: int = Field(default=5, ge=3, description="Minimum height (walls + floor)")
    max_width: int = Field(default=12, ge=3, description="Maximum width")
    max_height: int = Field(default=12, ge=3, description="Maximum height")

    @model_validator(mode="before")
    @classmethod
    def parse_string(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value

        parts = re.split(r"\s+to\s+", value.strip(), flags=re.IGNORECASE)
        if len(parts) > 2:
            raise ValueError(f"Invalid size {value!r}, expected 'WxH' or 'WxH to WxH'")

        sizes = []
        for part in parts:
            match = _SIZE_PATTERN.match(part)
            if match is None:
                raise ValueError(f"Invalid size {part!r}, expected 'WxH'")
            sizes.append((int(match.group(1)), int(match.group(2))))

        (min_w, min_h), (max_w, max_h) = sizes[0], sizes[-1]
        return {"min_width": min_w, "min_height": min_h, "max_width": max_w, "max_height": max_h}

    @classmethod
    def for_cell(cls, cell_size: int) -> "SizeRange":
        """Default bounds for rooms that fill a layout cell of cell_size tiles."""
        low = min(5, cell_size)
        return cls(min_width=low, min_height=low, max_width=cell_size, max_height=cell_size)

    @model_validator(mode="after")
    def check_order(self) -> "SizeRange":
        if self.max_width < self.min_width:
            raise ValueError(
                f"Max width ({self.max_width}) cannot be less than min width ({self.min_width})"
            )
        if self.max_height < self.min_height:
            raise ValueError(
                f"Max height ({self.max_height}) cannot be less than min height ({self.min_height})"
            )
        return self


class RoomTypeParams(BaseModel):
    """Configuration for one room role."""

    count: RoomCount = Field(default_factory=lambda: IntRange(min=1, max=1))
    size: SizeRange | None = Field(
        default=None, description="Room size bounds (derived from the cell size when omitted)"
    )
    placement: str | None = Field(
        default=None, description="Placement hint, e.g. 'far_from_spawn' (informational)"
    )
    source: RoomSourceKind | None = Field(default=None, description="Room content source kind")
    template_files: list[str] = Field(
        default_factory=list, description="Explicit template files for this role"
    )
    weight_template: float = Field(
        default=0.5, ge=0, le=1, description="Template share when source is 'mixed'"
    )

    @field_validator("count", mode="before")
    @classmethod
    def parse_count(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() == REST:
            return REST
        if isinstance(value, IntRange):
            return value
        return IntRange.model_validate(value)

    @field_validator("source", mode="before")
    @classmethod
    def normalize_source(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_rest(self) -> bool:
        return self.count == REST

    @property
    def source_kind(self) -> RoomSourceKind:
        """Resolved source kind: explicit source, else template when files are listed."""
        if self.source is not None:
            return self.source
        if self.template_files:
            return RoomSourceKind.TEMPLATE
        return RoomSourceKind.PROCEDURAL


class CorridorParams(BaseModel):
    style: str = Field(default="winding", description="Corridor style name")
    width: int = Field(default=1, ge=1, description="Door/corridor width in tiles")


class TileIds(BaseModel):
    """Tile id mapping written into the generated map."""

    floor: int = Field(default=1, ge=1)
    wall: int = Field(default=2, ge=1)
    door: int = Field(default=3, ge=1)
    spawn: int = Field(default=4, ge=1)
    boss: int = Field(default=5, ge=1)


class GenerationParams(BaseModel):
    """Parameters for procedural dungeon generation.

    This Pydantic model normalises the human-friendly forms ("8-12", "5x5 to 12x12",
    "rest", "Void") into resolved values and validates cross-field consistency.
    """

    name: str = Field(default="dungeon", description="Dungeon name")
    seed: int | None = Field(default=None, description="Random seed (None for nondeterministic)")

    # Map dimensions
    width: int = Field(default=50, ge=10, description="Map width in tiles")
    height: int = Field(default=50, ge=10, description="Map height in tiles")
    cell_size: int = Field(default=10, ge=3, description="Layout cell size in tiles")
    tile_size: int = Field(default=16, ge=1, description="Tile size in pixels")
    exterior: ExteriorMode = Field(default=ExteriorMode.WALLS, description="Exterior treatment")

    # Rooms
    room_count: IntRange = Field(default_factory=lambda: IntRange(min=8, max=12))
    room_types: dict[str, RoomTypeParams] = Field(default_factory=dict)
    templates_dir: str | None = Field(default=None, description="Directory of TMX templates")

    corridors: CorridorParams = Field(default_factory=CorridorParams)
    tiles: TileIds = Field(default_factory=TileIds)

    layout_attempts: int = Field(
        default=DEFAULT_LAYOUT_ATTEMPTS,
        ge=1,
        description="Layout growth attempts while below the minimum room count",
    )

    @field_validator("exterior", mode="before")
    @classmethod
    def normalize_exterior(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("room_count")
    @classmethod
    def validate_room_count(cls, v: IntRange) -> IntRange:
        if v.min < 1:
            raise ValueError(f"Minimum room count ({v.min}) must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_room_types(self) -> "GenerationParams":
        fixed_rooms = 0
        for role, type_params in self.room_types.items():
            size = type_params.size
            if size is None:
                self.room_types[role] = type_params.model_copy(
                    update={"size": SizeRange.for_cell(self.cell_size)}
                )
            elif size.max_width > self.width - 2:
                raise ValueError(
                    f"Room type '{role}' maximum width ({size.max_width}) "
                    f"exceeds dungeon width ({self.width})"
                )
            elif size.max_height > self.height - 2:
                raise ValueError(
                    f"Room type '{role}' maximum height ({size.max_height}) "
                    f"exceeds dungeon height ({self.height})"
                )
            if not type_params.is_rest:
                fixed_rooms += type_params.count.min

        if fixed_rooms > self.room_count.max:
            raise ValueError(
                f"Sum of fixed room counts ({fixed_rooms}) exceeds "
                f"maximum room count ({self.room_count.max})"
            )
        return self

    @property
    def grid_width(self) -> int:
        return max(3, self.width // self.cell_size)

    @property
    def grid_height(self) -> int:
        return max(3, self.height // self.cell_size)

    @property
    def door_width(self) -> int:
        return self.corridors.width
