"""
Boundary layer data model(s).

The state snapshot defined here is the contract between the game engine and whatever transports it
(socket server, persistence, a client). Both the service layer (higher) and the domain layer (lower)
use it to send/receive a complete Game.

Field names go over the wire in camelCase (ex. `currentTurn`, `moveHistory`), while Python code uses
the snake_case attribute names. Serialize with `model_dump(by_alias=True)`.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.core.shared_types import Color

BOARD_CELLS = 64
PIECE_TAGS = "KQRBNPkqrbnp"

CellIndex = int


def _validate_tag(value: Optional[str]) -> Optional[str]:
    if value is not None and (len(value) != 1 or value not in PIECE_TAGS):
        raise ValueError(f"Unknown piece tag: {value!r}")
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LastMoveModel(WireModel):
    from_square: CellIndex = Field(alias="from", ge=0, lt=BOARD_CELLS)
    to_square: CellIndex = Field(alias="to", ge=0, lt=BOARD_CELLS)


class MoveRecordModel(WireModel):
    from_square: CellIndex = Field(alias="from", ge=0, lt=BOARD_CELLS)
    to_square: CellIndex = Field(alias="to", ge=0, lt=BOARD_CELLS)
    piece: str
    captured: Optional[str] = None
    move_number: int
    is_en_passant: bool = False
    is_double_push: bool = False
    promotion: Optional[str] = None

    @field_validator("piece", "captured", "promotion")
    @classmethod
    def validate_piece_tag(cls, value: Optional[str]) -> Optional[str]:
        return _validate_tag(value)


class GameState(WireModel):
    """Transport-safe representation of a complete Kalas game."""

    board: list[Optional[str]]
    current_turn: Color
    move_number: int = 1
    # older snapshots do not carry the turn count: derived from the history on load
    turn_count: Optional[int] = None
    game_over: bool = False
    winner: Optional[Color] = None
    last_move: Optional[LastMoveModel] = None
    captures_allowed: bool = False  # derived, informational only
    move_history: list[MoveRecordModel] = Field(default_factory=list)
    white_time: Optional[int] = None
    black_time: Optional[int] = None
    time_control: Optional[int] = None
    en_passant_target: Optional[CellIndex] = Field(default=None, ge=0, lt=BOARD_CELLS)

    @field_validator("board")
    @classmethod
    def validate_board(cls, value: list[Optional[str]]) -> list[Optional[str]]:
        if len(value) != BOARD_CELLS:
            raise ValueError(f"Board must have {BOARD_CELLS} cells, got {len(value)}")
        for tag in value:
            _validate_tag(tag)
        return value
