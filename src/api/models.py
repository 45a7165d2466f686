"""Requests and Response models"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.models import GameState
from src.core.shared_types import Color, Difficulty, GameResult, MatchStatus
from src.kalas.square import algebraic_to_index

GameCode = str
PlayerName = str


def _validate_player_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise InvalidRequestError("Player name cannot be empty.")
    return name


def normalize_game_code(value: str) -> str:
    """Codes are shared by hand, accept them in any case"""
    return value.strip().upper()


# --- REQUEST MODELS ---
class CreateMatchRequest(BaseModel):
    player_name: str
    time_control: Optional[int] = Field(default=None, ge=0)

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _validate_player_name(value)


class CreateAIMatchRequest(BaseModel):
    player_name: str
    color: Optional[Color] = None  # None = random
    difficulty: Optional[Difficulty] = None
    time_control: Optional[int] = Field(default=None, ge=0)

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _validate_player_name(value)


class JoinMatchRequest(BaseModel):
    game_id: GameCode
    player_name: str

    @field_validator("game_id")
    @classmethod
    def normalize_game_id(cls, value: str) -> str:
        return normalize_game_code(value)

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _validate_player_name(value)


class MoveRequest(BaseModel):
    game_id: GameCode
    player_name: str
    from_square: str
    to_square: str

    @field_validator("game_id")
    @classmethod
    def normalize_game_id(cls, value: str) -> str:
        return normalize_game_code(value)

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        try:
            algebraic_to_index(value)
        except ValueError:
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            ) from None
        return value.lower()


class ResignRequest(BaseModel):
    game_id: GameCode
    player_name: str

    @field_validator("game_id")
    @classmethod
    def normalize_game_id(cls, value: str) -> str:
        return normalize_game_code(value)


class CancelMatchRequest(BaseModel):
    game_id: GameCode
    player_name: str

    @field_validator("game_id")
    @classmethod
    def normalize_game_id(cls, value: str) -> str:
        return normalize_game_code(value)


class GetMatchRequest(BaseModel):
    game_id: GameCode

    @field_validator("game_id")
    @classmethod
    def normalize_game_id(cls, value: str) -> str:
        return normalize_game_code(value)


# --- RESPONSE MODELS ---
class MatchResponse(BaseModel):
    game_id: GameCode
    players: dict[Color, PlayerName]
    status: MatchStatus
    ai_difficulty: Optional[Difficulty] = None
    ai_color: Optional[Color] = None
    state: GameState


class StatusResponse(BaseModel):
    """Outcome of an action that may end the game (a move, a resignation, a timeout)"""

    game_id: GameCode
    game_over: bool
    result: Optional[GameResult] = None
    winner: Optional[Color] = None
    in_check: bool = False
    message: str = ""
    state: GameState


class LobbyEntry(BaseModel):
    game_id: GameCode
    creator: PlayerName
    time_control: int
