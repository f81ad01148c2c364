"""Room source protocol."""

import random
from typing import Protocol

from dungeon.rooms.blueprint import RoomBlueprint


class RoomSource(Protocol):
    """Protocol for producers of room blueprints.

    Sampling is pull-based: each ``next_blueprint`` call answers one blueprint for
    the role, or None once the source has nothing left to offer. Procedural and
    composite sources can always answer; template sources run dry once their
    finite pool for the role is used up.
    """

    def can_provide(self, role: str) -> bool:
        """Check if this source can produce blueprints for a role at all.

        Args:
            role: Room role, e.g. "spawn", "boss", "treasure", "standard"

        Returns:
            True if the source has content for the role
        """
        ...

    def next_blueprint(self, role: str, rng: random.Random) -> RoomBlueprint | None:
        """Draw one blueprint for a role.

        Args:
            role: Room role to produce
            rng: Shared random generator for the whole generation

        Returns:
            A blueprint tagged with the requested role, or None if exhausted
        """
        ...

    def reset(self) -> None:
        """Discard sampling state so the next generation starts fresh."""
        ...
