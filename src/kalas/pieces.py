"""Defines the types of chess pieces"""

from dataclasses import dataclass
from typing import Self

from src.core.exceptions import InvalidStateError
from src.core.shared_types import Color, PieceType

TAG_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_TAG: dict[PieceType, str] = {value: key for key, value in TAG_TO_PIECE.items()}

# Fixed multiset of non-pawn, non-king pieces every side starts with
BACK_PIECES: tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.KNIGHT,
)


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_tag(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        if len(character) != 1 or character.lower() not in TAG_TO_PIECE:
            raise InvalidStateError(f"Unknown piece tag: {character!r}")
        color = Color.WHITE if character.isupper() else Color.BLACK
        piece_type = TAG_TO_PIECE[character.lower()]
        return cls(piece_type, color)

    def to_tag(self) -> str:
        return (
            PIECE_TO_TAG[self.type].upper()
            if self.color == Color.WHITE
            else PIECE_TO_TAG[self.type]
        )

    def promoted_to(self, new_type: PieceType) -> "Piece":
        """Pieces are immutable: a promotion gives a new piece of the same color."""
        return Piece(new_type, self.color)
