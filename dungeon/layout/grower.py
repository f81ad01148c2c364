"""Randomized breadth-first growth of the abstract room layout."""

import logging
import random
from collections import deque

from core.types import Edge
from dungeon.layout.cell import GridCell, LayoutGraph

logger = logging.getLogger(__name__)

# Candidates with more occupied neighbours than this are rejected (keeps layouts near-tree)
MAX_OCCUPIED_NEIGHBORS = 2
# Fixed chance to skip an otherwise valid candidate, for organic sparsity
SKIP_CHANCE = 0.3


class LayoutGrower:
    """Grows a connected, edge-labelled cell graph outward from the grid centre."""

    def __init__(
        self,
        grid_width: int,
        grid_height: int,
        target_rooms: int,
        rng: random.Random,
    ) -> None:
        """Initialize the grower.

        Args:
            grid_width: Layout width in cells
            grid_height: Layout height in cells
            target_rooms: Number of cells to grow (already drawn from the configured range)
            rng: Shared random generator for the whole generation
        """
        self.grid_width = grid_width
        self.grid_height = grid_height
        self.target_rooms = target_rooms
        self.rng = rng

    @property
    def start_position(self) -> tuple[int, int]:
        return (self.grid_width // 2, self.grid_height // 2)

    def grow(self) -> LayoutGraph:
        """Grow a single layout.

        The first cell (id 0) is the centre cell. Growth stops when the target is
        reached or every frontier was rejected; in the latter case the layout has
        fewer cells than requested.

        Returns:
            The grown LayoutGraph
        """
        graph = LayoutGraph(self.grid_width, self.grid_height)
        start = graph.add_cell(*self.start_position)
        queue: deque[GridCell] = deque([start])

        while queue and len(graph) < self.target_rooms:
            current = queue.popleft()

            directions = list(Edge)
            self.rng.shuffle(directions)

            for edge in directions:
                if len(graph) >= self.target_rooms:
                    break

                dx, dy = edge.delta
                nx, ny = current.x + dx, current.y + dy

                if not graph.in_bounds(nx, ny) or graph.is_occupied(nx, ny):
                    continue

                if graph.occupied_neighbor_count(nx, ny) > MAX_OCCUPIED_NEIGHBORS:
                    continue

                if self.rng.random() < SKIP_CHANCE:
                    continue

                new_cell = graph.add_cell(nx, ny)
                graph.link(current, edge, new_cell)
                self._link_incidental(graph, new_cell, current)
                queue.append(new_cell)

        if len(graph) < self.target_rooms:
            logger.debug(f"Layout growth stalled at {len(graph)}/{self.target_rooms} cells")

        return graph

    @staticmethod
    def _link_incidental(graph: LayoutGraph, cell: GridCell, origin: GridCell) -> None:
        """Link a new cell to already-occupied adjacent cells other than its origin."""
        for edge in Edge:
            if cell.has_neighbor(edge):
                continue
            dx, dy = edge.delta
            adjacent = graph.cell_at(cell.x + dx, cell.y + dy)
            if adjacent is not None and adjacent is not origin:
                graph.link(cell, edge, adjacent)
