"""
A match: one Game plus who plays it.

The live Game object is kept (not a snapshot) because the clock's running timestamp
is not part of GameState.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from src.core.shared_types import Color, Difficulty, MatchStatus
from src.kalas.game import Game

if TYPE_CHECKING:
    from src.ai.engine import ChessAI

GameCode = str
PlayerName = str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Match:
    game_id: GameCode
    game: Game
    creator: PlayerName
    players: dict[Color, PlayerName] = field(default_factory=dict)
    status: MatchStatus = MatchStatus.WAITING
    ai_difficulty: Optional[Difficulty] = None
    ai: Optional["ChessAI"] = field(default=None, repr=False, compare=False)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_ai_match(self) -> bool:
        return self.ai is not None

    @property
    def ai_color(self) -> Optional[Color]:
        """Color played by the computer (the one without a human name)"""
        if not self.is_ai_match:
            return None
        return next(
            (color for color in (Color.WHITE, Color.BLACK) if color not in self.players),
            None,
        )

    def color_of(self, player: PlayerName) -> Optional[Color]:
        return next(
            (color for color, name in self.players.items() if name == player), None
        )
