"""Implementation of (Match)Repository keeping the live matches in process memory"""

import logging
import threading

from src.core.match import GameCode, Match

logger = logging.getLogger(__name__)


class InMemoryMatchRepository:
    """Matches stored in a dict keyed by game code. Safe to share between threads."""

    def __init__(self) -> None:
        self._matches: dict[GameCode, Match] = {}
        self._lock = threading.Lock()

    def get_match(self, game_id: GameCode) -> Match | None:
        """Get match by code, if it exists."""
        with self._lock:
            return self._matches.get(game_id)

    def add_match(self, match: Match) -> Match:
        """Store a new match under its own code."""
        with self._lock:
            self._matches[match.game_id] = match
        logger.debug("Stored match %s", match.game_id)
        return match

    def update_match(self, match: Match) -> Match | None:
        """Replace the stored match with the same code."""
        with self._lock:
            if match.game_id not in self._matches:
                return None
            self._matches[match.game_id] = match
        return match

    def delete_match(self, game_id: GameCode) -> Match | None:
        """Remove a match."""
        with self._lock:
            removed = self._matches.pop(game_id, None)
        if removed is not None:
            logger.debug("Removed match %s", game_id)
        return removed

    def list_matches(self) -> list[Match]:
        """Every stored match, oldest first."""
        with self._lock:
            return sorted(self._matches.values(), key=lambda match: match.created_at)

    def has_code(self, game_id: GameCode) -> bool:
        with self._lock:
            return game_id in self._matches

    def clear(self) -> None:
        with self._lock:
            self._matches.clear()
