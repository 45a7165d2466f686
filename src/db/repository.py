"""Protocol repository (the in-memory registry is the only implementation, a persistent one can follow)"""

from typing import Protocol

from src.core.match import GameCode, Match


class MatchRepository(Protocol):
    """Match registry orchestration"""

    def get_match(self, game_id: GameCode) -> Match | None:
        """Get match by code, if it exists."""
        ...

    def add_match(self, match: Match) -> Match:
        """Store a new match under its own code."""
        ...

    def update_match(self, match: Match) -> Match | None:
        """Replace the stored match with the same code."""
        ...

    def delete_match(self, game_id: GameCode) -> Match | None:
        """Remove a match."""
        ...

    def list_matches(self) -> list[Match]:
        """Every stored match, oldest first."""
        ...

    def has_code(self, game_id: GameCode) -> bool:
        """Is this code taken by a live match."""
        ...
