"""Object groups and objects of a tile map (spawn points, room bounds, markers)."""

from dataclasses import dataclass, field
from typing import NamedTuple

from core.types import ObjectID


class Point(NamedTuple):
    x: float
    y: float


class Rect(NamedTuple):
    x: int
    y: int
    w: int
    h: int

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x < self.x + self.w and self.y <= y < self.y + self.h

    def intersects(self, other: "Rect") -> bool:
        return (
            self.x < other.x + other.w
            and other.x < self.x + self.w
            and self.y < other.y + other.h
            and other.y < self.y + self.h
        )


@dataclass
class MapObject:
    """An object in an object group.

    Objects without width/height are point objects (spawn locations); objects with
    both are rectangles (room bounds). Positions and sizes are in pixels.
    """

    id: ObjectID
    name: str
    type: str
    x: float
    y: float
    width: float | None = None
    height: float | None = None
    properties: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if (self.width is None) != (self.height is None):
            raise ValueError(
                f"Object {self.name!r} needs both width and height or neither, "
                f"got width={self.width} height={self.height}"
            )

    @property
    def is_point(self) -> bool:
        return self.width is None

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    @property
    def bounds(self) -> Rect:
        """Integer pixel bounds. Point objects yield a zero-size rectangle."""
        return Rect(int(self.x), int(self.y), int(self.width or 0), int(self.height or 0))

    def set_property(self, name: str, value: str) -> None:
        self.properties[name] = value

    def get_property(self, name: str) -> str | None:
        return self.properties.get(name)


class ObjectGroup:
    """Named, ordered collection of objects with monotonically assigned ids."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.objects: list[MapObject] = []
        self._next_id = 1

    def add_object(
        self,
        name: str,
        type: str,
        x: float,
        y: float,
        width: float | None = None,
        height: float | None = None,
        properties: dict[str, str] | None = None,
    ) -> MapObject:
        """Add an object, assigning the next id in this group.

        Pass both width and height for a rectangle, neither for a point.
        """
        obj = MapObject(
            id=ObjectID(self._next_id),
            name=name,
            type=type,
            x=x,
            y=y,
            width=width,
            height=height,
            properties=dict(properties or {}),
        )
        self._next_id += 1
        self.objects.append(obj)
        return obj

    def add_existing_object(self, obj: MapObject) -> None:
        """Add an object that already carries an id (used when loading).

        Later ``add_object`` calls continue past the highest id seen.
        """
        self.objects.append(obj)
        if obj.id >= self._next_id:
            self._next_id = obj.id + 1

    def get_object(self, name: str) -> MapObject | None:
        return next((obj for obj in self.objects if obj.name == name), None)

    def get_objects_by_type(self, type: str) -> list[MapObject]:
        return [obj for obj in self.objects if obj.type == type]

    def __len__(self) -> int:
        return len(self.objects)

    def __repr__(self) -> str:
        return f"ObjectGroup(name={self.name!r}, objects={len(self.objects)})"
