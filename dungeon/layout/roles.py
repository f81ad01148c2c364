"""Topological room role assignment."""

import logging
import random
from collections import Counter, deque
from typing import Callable

from core.types import RoomRole
from dungeon.layout.cell import GridCell, LayoutGraph

logger = logging.getLogger(__name__)

# Given the number of dead-end candidates, return how many become treasure rooms
TreasureCountFn = Callable[[int], int]


def find_farthest_cell(graph: LayoutGraph, start: GridCell) -> GridCell:
    """Return the last cell dequeued by a level-order traversal from start."""
    visited = {start.id}
    queue = deque([start])
    farthest = start

    while queue:
        current = queue.popleft()
        farthest = current
        for neighbor in graph.neighbors(current):
            if neighbor.id not in visited:
                visited.add(neighbor.id)
                queue.append(neighbor)

    return farthest


class RoomTypeAssigner:
    """Labels grown cells as spawn, boss, treasure or standard from graph topology only."""

    def __init__(self, rng: random.Random, treasure_count: TreasureCountFn | int = 0) -> None:
        """Initialize the assigner.

        Args:
            rng: Shared random generator for the whole generation
            treasure_count: Fixed treasure room count, or a callable drawing the count
                given the number of dead-end candidates (called after the shuffle)
        """
        self.rng = rng
        self.treasure_count = treasure_count

    def assign(self, graph: LayoutGraph) -> None:
        """Assign a role to every cell in place. Cell 0 is the spawn cell."""
        if len(graph) == 0:
            return

        spawn = graph.cells[0]
        spawn.role = RoomRole.SPAWN.value

        farthest = find_farthest_cell(graph, spawn)
        if farthest is not spawn:
            farthest.role = RoomRole.BOSS.value

        dead_ends = [cell for cell in graph if cell.neighbor_count == 1 and cell.role is None]
        self.rng.shuffle(dead_ends)

        wanted = (
            self.treasure_count(len(dead_ends))
            if callable(self.treasure_count)
            else self.treasure_count
        )
        for cell in dead_ends[: max(0, wanted)]:
            cell.role = RoomRole.TREASURE.value

        for cell in graph:
            if cell.role is None:
                cell.role = RoomRole.STANDARD.value

        roles = Counter(cell.role for cell in graph)
        logger.debug(f"Assigned room roles: {dict(roles)} ({len(dead_ends)} dead ends)")
