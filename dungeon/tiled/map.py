"""Tiled-style tile map model with TMX (XML) export and import."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

import numpy as np

from core.types import ObjectID
from dungeon.tiled.layer import TileLayer
from dungeon.tiled.objects import MapObject, ObjectGroup, Point, Rect

logger = logging.getLogger(__name__)

DEFAULT_TILE_SIZE = 16

# Well-known layer and group names
TILES_LAYER = "Tiles"
ROOMS_GROUP = "Rooms"
SPAWNS_GROUP = "Spawns"
DOORS_GROUP = "Doors"

TMX_VERSION = "1.10"
TILED_VERSION = "1.10.2"
TILESET_NAME = "dungeon"
TILESET_TILE_COUNT = 256
TILESET_COLUMNS = 16

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _format_number(value: float) -> str:
    """Format a pixel value the way Tiled does: integral values without a fraction."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


class TileMap:
    """Tile map: dimensions, tile size, ordered tile layers and ordered object groups."""

    def __init__(
        self,
        width: int,
        height: int,
        tile_width: int = DEFAULT_TILE_SIZE,
        tile_height: int = DEFAULT_TILE_SIZE,
    ) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Map dimensions must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        self.tile_width = tile_width
        self.tile_height = tile_height
        self.layers: list[TileLayer] = []
        self.object_groups: list[ObjectGroup] = []
        self.properties: dict[str, str] = {}

    def add_tile_layer(self, name: str) -> TileLayer:
        """Add a map-sized tile layer, filled with empty tiles."""
        layer = TileLayer(name, self.width, self.height)
        self.layers.append(layer)
        return layer

    def get_tile_layer(self, name: str) -> TileLayer | None:
        return next((layer for layer in self.layers if layer.name == name), None)

    def add_object_group(self, name: str) -> ObjectGroup:
        group = ObjectGroup(name)
        self.object_groups.append(group)
        return group

    def get_object_group(self, name: str) -> ObjectGroup | None:
        return next((group for group in self.object_groups if group.name == name), None)

    # Runtime queries used by game code

    def collision_rectangles(self, layer_name: str, tile_id: int) -> list[Rect]:
        """Get one pixel rectangle per tile matching tile_id (e.g. walls), row-major.

        Returns an empty list if the layer does not exist.
        """
        layer = self.get_tile_layer(layer_name)
        if layer is None:
            return []

        return [
            Rect(
                int(x) * self.tile_width,
                int(y) * self.tile_height,
                self.tile_width,
                self.tile_height,
            )
            for y, x in np.argwhere(layer.data == tile_id)
        ]

    def spawn_point(self, name: str) -> Point | None:
        """Get a spawn point position (pixels) by object name, e.g. "PlayerSpawn"."""
        spawns = self.get_object_group(SPAWNS_GROUP)
        if spawns is None:
            return None
        spawn = spawns.get_object(name)
        return spawn.position if spawn is not None else None

    def spawn_points_by_type(self, type: str) -> list[Point]:
        """Get all spawn point positions (pixels) of a type, e.g. "treasure"."""
        spawns = self.get_object_group(SPAWNS_GROUP)
        if spawns is None:
            return []
        return [obj.position for obj in spawns.get_objects_by_type(type)]

    def room_bounds(self, name: str) -> Rect | None:
        """Get a room's pixel bounds by object name."""
        rooms = self.get_object_group(ROOMS_GROUP)
        if rooms is None:
            return None
        room = rooms.get_object(name)
        if room is None or room.is_point:
            return None
        return room.bounds

    def rooms_by_type(self, type: str) -> list[Rect]:
        """Get pixel bounds of all rooms with the given role."""
        rooms = self.get_object_group(ROOMS_GROUP)
        if rooms is None:
            return []
        return [obj.bounds for obj in rooms.get_objects_by_type(type) if not obj.is_point]

    def all_room_bounds(self) -> list[Rect]:
        rooms = self.get_object_group(ROOMS_GROUP)
        if rooms is None:
            return []
        return [obj.bounds for obj in rooms.objects if not obj.is_point]

    def __repr__(self) -> str:
        return (
            f"TileMap({self.width}x{self.height}, tile={self.tile_width}x{self.tile_height}, "
            f"layers={len(self.layers)}, object_groups={len(self.object_groups)})"
        )

    # TMX export

    def _build_element(self) -> ET.Element:
        root = ET.Element(
            "map",
            version=TMX_VERSION,
            tiledversion=TILED_VERSION,
            orientation="orthogonal",
            renderorder="right-down",
            width=str(self.width),
            height=str(self.height),
            tilewidth=str(self.tile_width),
            tileheight=str(self.tile_height),
            infinite="0",
        )

        if self.properties:
            root.append(_properties_element(self.properties))

        ET.SubElement(
            root,
            "tileset",
            firstgid="1",
            name=TILESET_NAME,
            tilewidth=str(self.tile_width),
            tileheight=str(self.tile_height),
            tilecount=str(TILESET_TILE_COUNT),
            columns=str(TILESET_COLUMNS),
        )

        for layer in self.layers:
            layer_elem = ET.SubElement(
                root,
                "layer",
                name=layer.name,
                width=str(layer.width),
                height=str(layer.height),
            )
            data_elem = ET.SubElement(layer_elem, "data", encoding="csv")
            data_elem.text = "\n" + layer.to_csv() + "\n"

        for group in self.object_groups:
            group_elem = ET.SubElement(root, "objectgroup", name=group.name)
            for obj in group.objects:
                obj_elem = ET.SubElement(
                    group_elem,
                    "object",
                    id=str(obj.id),
                    name=obj.name,
                    type=obj.type,
                    x=_format_number(obj.x),
                    y=_format_number(obj.y),
                )
                if obj.width is not None:
                    obj_elem.set("width", _format_number(obj.width))
                if obj.height is not None:
                    obj_elem.set("height", _format_number(obj.height))
                if obj.properties:
                    obj_elem.append(_properties_element(obj.properties))

        return root

    def to_xml(self) -> str:
        """Serialize the map to a TMX XML document string."""
        root = self._build_element()
        ET.indent(root, space=" ", level=0)
        return XML_DECLARATION + ET.tostring(root, encoding="unicode")

    def to_tmx(self, filepath: str | Path) -> None:
        """Export the map to a TMX file, creating parent directories as needed."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        tree = ET.ElementTree(self._build_element())
        ET.indent(tree, space=" ", level=0)
        tree.write(path, encoding="utf-8", xml_declaration=True)
        logger.debug(f"Wrote TMX map {self.width}x{self.height} to {path}")

    # TMX import

    @classmethod
    def from_xml(cls, xml: str) -> "TileMap":
        """Parse a map from a TMX XML document string.

        Raises:
            ValueError: If the document is malformed or not a supported TMX map
        """
        try:
            root = ET.fromstring(xml)
        except ET.ParseError as e:
            raise ValueError(f"Invalid TMX document: {e}") from e
        return cls._from_element(root)

    @classmethod
    def from_tmx(cls, filepath: str | Path) -> "TileMap":
        """Import a map from a TMX file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is malformed or not a supported TMX map
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"TMX file not found: {path}")

        try:
            tree = ET.parse(path)
        except ET.ParseError as e:
            raise ValueError(f"Invalid TMX file {path}: {e}") from e
        return cls._from_element(tree.getroot())

    @classmethod
    def _from_element(cls, root: ET.Element) -> "TileMap":
        if root.tag != "map":
            raise ValueError(f"Invalid TMX: root element is <{root.tag}>, expected <map>")

        orientation = root.get("orientation", "orthogonal")
        if orientation != "orthogonal":
            raise ValueError(f"Only orthogonal maps are supported, got orientation={orientation}")

        width = _int_attr(root, "width")
        height = _int_attr(root, "height")
        tile_width = _int_attr(root, "tilewidth", DEFAULT_TILE_SIZE)
        tile_height = _int_attr(root, "tileheight", DEFAULT_TILE_SIZE)

        tile_map = cls(width, height, tile_width, tile_height)
        tile_map.properties = _parse_properties(root)

        for layer_elem in root.findall("layer"):
            name = layer_elem.get("name", "Unnamed")
            layer_width = _int_attr(layer_elem, "width", width)
            layer_height = _int_attr(layer_elem, "height", height)
            if layer_width != width or layer_height != height:
                raise ValueError(
                    f"Layer {name!r} has size {layer_width}x{layer_height} "
                    f"not matching map {width}x{height}"
                )

            layer = tile_map.add_tile_layer(name)
            data_elem = layer_elem.find("data")
            if data_elem is None:
                continue
            encoding = data_elem.get("encoding", "")
            if encoding != "csv":
                raise ValueError(
                    f"Layer {name!r} data encoding={encoding!r} is unsupported (only 'csv')"
                )
            layer.load_csv(data_elem.text or "")

        for group_elem in root.findall("objectgroup"):
            group = tile_map.add_object_group(group_elem.get("name", "Unnamed"))
            for obj_elem in group_elem.findall("object"):
                group.add_existing_object(_parse_object(obj_elem))

        return tile_map


def _properties_element(properties: dict[str, str]) -> ET.Element:
    props_elem = ET.Element("properties")
    for name, value in properties.items():
        ET.SubElement(props_elem, "property", name=name, value=str(value))
    return props_elem


def _parse_properties(elem: ET.Element) -> dict[str, str]:
    props_elem = elem.find("properties")
    if props_elem is None:
        return {}
    return {
        prop.get("name", ""): prop.get("value", prop.text or "")
        for prop in props_elem.findall("property")
    }


def _int_attr(elem: ET.Element, name: str, default: int | None = None) -> int:
    value = elem.get(name)
    if value is None:
        if default is None:
            raise ValueError(f"<{elem.tag}> is missing required attribute {name!r}")
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"<{elem.tag}> attribute {name}={value!r} is not an integer") from e


def _float_attr(elem: ET.Element, name: str) -> float | None:
    value = elem.get(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(f"<{elem.tag}> attribute {name}={value!r} is not a number") from e


def _parse_object(obj_elem: ET.Element) -> MapObject:
    width = _float_attr(obj_elem, "width")
    height = _float_attr(obj_elem, "height")
    if width is None or height is None:
        width = height = None

    return MapObject(
        id=ObjectID(_int_attr(obj_elem, "id", 0)),
        name=obj_elem.get("name", ""),
        # Tiled 1.9+ writes "class" instead of "type"
        type=obj_elem.get("type", obj_elem.get("class", "")),
        x=_float_attr(obj_elem, "x") or 0.0,
        y=_float_attr(obj_elem, "y") or 0.0,
        width=width,
        height=height,
        properties=_parse_properties(obj_elem),
    )
