"""Weighted blend of several room sources."""

import logging
import random

from dungeon.rooms.blueprint import RoomBlueprint
from dungeon.rooms.source import RoomSource

logger = logging.getLogger(__name__)


class CompositeRoomSource:
    """Delegates each request to one member source picked by roulette selection.

    Only members that can provide the requested role take part in the draw, and
    their weights are normalised over that subset. Members added with a
    non-positive weight are dropped, so an empty or zero-weight source never
    changes the outcome.
    """

    def __init__(self) -> None:
        self.sources: list[tuple[RoomSource, float]] = []

    def add_source(self, source: RoomSource, weight: float = 1.0) -> None:
        if weight > 0:
            self.sources.append((source, weight))

    def applicable_sources(self, role: str) -> list[tuple[RoomSource, float]]:
        return [(source, weight) for source, weight in self.sources if source.can_provide(role)]

    def can_provide(self, role: str) -> bool:
        return any(source.can_provide(role) for source, _ in self.sources)

    def choose_source(self, role: str, rng: random.Random) -> RoomSource | None:
        """Pick the member to serve a role.

        A single applicable member is returned without consuming randomness.

        Args:
            role: Requested room role
            rng: Shared random generator

        Returns:
            The chosen source, or None if no member can provide the role
        """
        candidates = self.applicable_sources(role)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0][0]

        total = sum(weight for _, weight in candidates)
        roll = rng.random() * total
        cumulative = 0.0
        for source, weight in candidates:
            cumulative += weight
            if roll < cumulative:
                return source

        # Floating point rounding can leave roll == total
        return candidates[-1][0]

    def next_blueprint(self, role: str, rng: random.Random) -> RoomBlueprint | None:
        source = self.choose_source(role, rng)
        if source is None:
            return None

        blueprint = source.next_blueprint(role, rng)
        if blueprint is None:
            logger.debug(f"Composite member {type(source).__name__} exhausted for role '{role}'")
        return blueprint

    def reset(self) -> None:
        for source, _ in self.sources:
            source.reset()
