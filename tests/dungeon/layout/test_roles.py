"""Tests for topological room role assignment."""

import random
import unittest
from collections import Counter

from core.types import Edge
from dungeon.layout.cell import LayoutGraph
from dungeon.layout.grower import LayoutGrower
from dungeon.layout.roles import RoomTypeAssigner, find_farthest_cell


def chain_graph(length: int) -> LayoutGraph:
    """Horizontal chain of cells starting at x=0."""
    graph = LayoutGraph(length, 1)
    previous = graph.add_cell(0, 0)
    for x in range(1, length):
        cell = graph.add_cell(x, 0)
        graph.link(previous, Edge.EAST, cell)
        previous = cell
    return graph


def plus_graph() -> LayoutGraph:
    """Centre cell with four arms; arms are dead ends."""
    graph = LayoutGraph(3, 3)
    center = graph.add_cell(1, 1)
    for edge in Edge:
        dx, dy = edge.delta
        graph.link(center, edge, graph.add_cell(1 + dx, 1 + dy))
    return graph


class TestFindFarthestCell(unittest.TestCase):
    def test_chain(self) -> None:
        graph = chain_graph(4)
        farthest = find_farthest_cell(graph, graph.cells[0])
        self.assertEqual(farthest.position, (3, 0))

    def test_single_cell(self) -> None:
        graph = chain_graph(1)
        self.assertIs(find_farthest_cell(graph, graph.cells[0]), graph.cells[0])

    def test_last_dequeued_in_edge_order(self) -> None:
        """Test that ties resolve to the last cell dequeued (West arm of a plus)."""
        graph = plus_graph()
        farthest = find_farthest_cell(graph, graph.cells[0])
        self.assertEqual(farthest.position, (0, 1))


class TestRoomTypeAssigner(unittest.TestCase):
    def test_single_cell_has_no_boss(self) -> None:
        graph = chain_graph(1)
        RoomTypeAssigner(random.Random(0), treasure_count=3).assign(graph)
        self.assertEqual(graph.cells[0].role, "spawn")

    def test_chain_roles(self) -> None:
        graph = chain_graph(4)
        RoomTypeAssigner(random.Random(0)).assign(graph)
        self.assertEqual([c.role for c in graph], ["spawn", "standard", "standard", "boss"])

    def test_dead_ends_become_treasure(self) -> None:
        """Test that the spawn and boss are excluded from dead-end candidates."""
        graph = plus_graph()
        RoomTypeAssigner(random.Random(0), treasure_count=10).assign(graph)
        roles = Counter(c.role for c in graph)
        self.assertEqual(roles, Counter({"spawn": 1, "boss": 1, "treasure": 3}))

    def test_treasure_count_limits_assignment(self) -> None:
        graph = plus_graph()
        RoomTypeAssigner(random.Random(0), treasure_count=2).assign(graph)
        roles = Counter(c.role for c in graph)
        self.assertEqual(roles["treasure"], 2)
        self.assertEqual(roles["standard"], 1)

    def test_treasure_count_callable_gets_dead_end_count(self) -> None:
        seen: list[int] = []

        def count(dead_ends: int) -> int:
            seen.append(dead_ends)
            return dead_ends

        graph = plus_graph()
        RoomTypeAssigner(random.Random(0), treasure_count=count).assign(graph)
        self.assertEqual(seen, [3])
        self.assertEqual(sum(1 for c in graph if c.role == "treasure"), 3)

    def test_empty_graph(self) -> None:
        graph = LayoutGraph(3, 3)
        RoomTypeAssigner(random.Random(0)).assign(graph)
        self.assertEqual(len(graph), 0)

    def test_role_cardinality_on_grown_layouts(self) -> None:
        """Test exactly one spawn, and one boss iff more than one cell."""
        for seed in range(40):
            rng = random.Random(seed)
            graph = LayoutGrower(6, 6, rng.randint(1, 12), rng).grow()
            RoomTypeAssigner(rng, treasure_count=lambda n: n).assign(graph)

            roles = Counter(c.role for c in graph)
            self.assertEqual(roles["spawn"], 1)
            self.assertEqual(graph.cells[0].role, "spawn")
            self.assertEqual(roles["boss"], 1 if len(graph) > 1 else 0)
            self.assertTrue(all(c.role is not None for c in graph))
            for cell in graph:
                if cell.role == "treasure":
                    self.assertEqual(cell.neighbor_count, 1)

    def test_deterministic_for_seed(self) -> None:
        def roles(seed: int) -> list[str | None]:
            rng = random.Random(seed)
            graph = LayoutGrower(6, 6, 10, rng).grow()
            RoomTypeAssigner(rng, treasure_count=2).assign(graph)
            return [c.role for c in graph]

        self.assertEqual(roles(9), roles(9))
