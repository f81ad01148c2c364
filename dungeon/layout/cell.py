from dataclasses import dataclass, field

from core.types import CellID, Edge, GridPos


def _empty_links() -> list[CellID | None]:
    return [None, None, None, None]


@dataclass
class GridCell:
    """Abstract layout cell: grid position, optional role, and four edge links.

    ``links`` is indexed by ``Edge`` and holds the id of the neighbouring cell
    across that edge, or None.
    """

    id: CellID
    x: int
    y: int
    role: str | None = None
    links: list[CellID | None] = field(default_factory=_empty_links)

    @property
    def position(self) -> GridPos:
        return (self.x, self.y)

    @property
    def neighbor_count(self) -> int:
        return sum(1 for link in self.links if link is not None)

    def has_neighbor(self, edge: Edge) -> bool:
        return self.links[edge] is not None

    def linked_edges(self) -> list[tuple[Edge, CellID]]:
        """(edge, neighbour id) pairs in North, East, South, West order."""
        return [(Edge(i), link) for i, link in enumerate(self.links) if link is not None]


class LayoutGraph:
    """Arena of grid cells with mutually consistent edge links.

    Cells get dense integer ids in creation order and are never removed. A
    position index gives O(1) occupancy checks.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Layout grid dimensions must be positive, got {width}x{height}")

        self.width = width
        self.height = height
        self.cells: list[GridCell] = []
        self._by_position: dict[GridPos, CellID] = {}

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_occupied(self, x: int, y: int) -> bool:
        return (x, y) in self._by_position

    def add_cell(self, x: int, y: int) -> GridCell:
        """Occupy a grid position with a new cell."""
        if not self.in_bounds(x, y):
            raise ValueError(f"Cell position ({x}, {y}) is outside {self.width}x{self.height}")
        if self.is_occupied(x, y):
            raise ValueError(f"Cell position ({x}, {y}) is already occupied")

        cell = GridCell(id=CellID(len(self.cells)), x=x, y=y)
        self.cells.append(cell)
        self._by_position[(x, y)] = cell.id
        return cell

    def get(self, cell_id: CellID) -> GridCell:
        return self.cells[cell_id]

    def cell_at(self, x: int, y: int) -> GridCell | None:
        cell_id = self._by_position.get((x, y))
        return self.cells[cell_id] if cell_id is not None else None

    def neighbor(self, cell: GridCell, edge: Edge) -> GridCell | None:
        link = cell.links[edge]
        return self.cells[link] if link is not None else None

    def neighbors(self, cell: GridCell) -> list[GridCell]:
        """Linked neighbours in North, East, South, West order."""
        return [self.cells[link] for _, link in cell.linked_edges()]

    def occupied_neighbor_count(self, x: int, y: int) -> int:
        """Count occupied cardinal positions around (x, y), linked or not."""
        count = 0
        for edge in Edge:
            dx, dy = edge.delta
            if self.is_occupied(x + dx, y + dy):
                count += 1
        return count

    def link(self, a: GridCell, edge: Edge, b: GridCell) -> None:
        """Link a to b across a's edge, and b back to a across the opposite edge.

        Raises:
            ValueError: If b is not the adjacent position across edge, or either
                side is already linked to a different cell
        """
        dx, dy = edge.delta
        if (a.x + dx, a.y + dy) != (b.x, b.y):
            raise ValueError(f"Cell {b.position} is not {edge.name} of cell {a.position}")

        opposite = edge.opposite
        if a.links[edge] not in (None, b.id) or b.links[opposite] not in (None, a.id):
            raise ValueError(f"Cells {a.position} and {b.position} already have other links")

        a.links[edge] = b.id
        b.links[opposite] = a.id

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self):
        return iter(self.cells)

    def __repr__(self) -> str:
        return f"LayoutGraph({self.width}x{self.height}, cells={len(self.cells)})"
