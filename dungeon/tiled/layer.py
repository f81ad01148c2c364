"""Tile layer storage and CSV encoding."""

import numpy as np

EMPTY_TILE = 0


class TileLayer:
    """Named dense grid of integer tile ids.

    Tiles are stored row-major in a numpy array indexed ``[y, x]``. Reads outside
    the layer return ``EMPTY_TILE`` and writes outside the layer are ignored, so
    passes that probe neighbours near the map edge need no bounds branching.
    """

    def __init__(self, name: str, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Layer {name!r} dimensions must be positive, got {width}x{height}")

        self.name = name
        self.width = width
        self.height = height
        self.data = np.zeros((height, width), dtype=np.int32)

    def in_bounds(self, x: int, y: int) -> bool:
        """Check if coordinates are within the layer."""
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> int:
        """Get the tile id at (x, y), or EMPTY_TILE when out of bounds."""
        if not self.in_bounds(x, y):
            return EMPTY_TILE
        return int(self.data[y, x])

    def set(self, x: int, y: int, tile_id: int) -> None:
        """Set the tile id at (x, y). Out-of-bounds writes are ignored."""
        if self.in_bounds(x, y):
            self.data[y, x] = tile_id

    def __getitem__(self, pos: tuple[int, int]) -> int:
        x, y = pos
        return self.get(x, y)

    def __setitem__(self, pos: tuple[int, int], tile_id: int) -> None:
        x, y = pos
        self.set(x, y, tile_id)

    def fill(self, tile_id: int) -> None:
        """Fill the entire layer with a tile id."""
        self.data.fill(tile_id)

    def fill_rect(self, x: int, y: int, width: int, height: int, tile_id: int) -> None:
        """Fill a rectangle with a tile id, clipped to the layer."""
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(self.width, x + width), min(self.height, y + height)
        if x0 < x1 and y0 < y1:
            self.data[y0:y1, x0:x1] = tile_id

    def paste(self, x: int, y: int, tiles: np.ndarray) -> None:
        """Copy a [y, x] tile patch with its top-left corner at (x, y), clipped to the layer."""
        patch_h, patch_w = tiles.shape
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(self.width, x + patch_w), min(self.height, y + patch_h)
        if x0 < x1 and y0 < y1:
            self.data[y0:y1, x0:x1] = tiles[y0 - y : y1 - y, x0 - x : x1 - x]

    def count(self, tile_id: int) -> int:
        """Count tiles with the given id."""
        return int(np.count_nonzero(self.data == tile_id))

    def to_csv(self) -> str:
        """Encode tiles as TMX CSV: rows joined by ``,\\n``, no trailing comma on the last row."""
        rows = [",".join(str(int(tile)) for tile in row) for row in self.data]
        return ",\n".join(rows)

    def load_csv(self, csv: str) -> None:
        """Load tiles from TMX CSV text.

        Raises:
            ValueError: If a value is not an integer or the tile count does not match
        """
        raw = csv.replace("\r", "").replace("\n", "")
        parts = [part.strip() for part in raw.split(",")]
        try:
            values = [int(part) for part in parts if part]
        except ValueError as e:
            raise ValueError(f"Layer {self.name!r} has a non-integer tile id: {e}") from e

        expected = self.width * self.height
        if len(values) != expected:
            raise ValueError(
                f"Layer {self.name!r} has {len(values)} tile ids but expected {expected}"
            )
        self.data = np.array(values, dtype=np.int32).reshape(self.height, self.width)

    def __repr__(self) -> str:
        return f"TileLayer(name={self.name!r}, {self.width}x{self.height})"
