"""Unit tests for /src/kalas/pieces.py"""

import pytest

from src.core.exceptions import InvalidStateError
from src.core.shared_types import Color, PieceType
from src.kalas.pieces import BACK_PIECES, Piece


@pytest.mark.parametrize(
    "tag, piece_type, color",
    [
        ("K", PieceType.KING, Color.WHITE),
        ("q", PieceType.QUEEN, Color.BLACK),
        ("R", PieceType.ROOK, Color.WHITE),
        ("b", PieceType.BISHOP, Color.BLACK),
        ("N", PieceType.KNIGHT, Color.WHITE),
        ("p", PieceType.PAWN, Color.BLACK),
    ],
)
def test_piece_from_tag(tag: str, piece_type: PieceType, color: Color) -> None:
    piece = Piece.from_tag(tag)
    assert piece == Piece(piece_type, color)
    assert piece.to_tag() == tag


@pytest.mark.parametrize("bad_tag", ["", "x", "KQ", "1"])
def test_unknown_tags_are_rejected(bad_tag: str) -> None:
    with pytest.raises(InvalidStateError):
        Piece.from_tag(bad_tag)


def test_promotion_keeps_the_color() -> None:
    pawn = Piece(PieceType.PAWN, Color.BLACK)
    queen = pawn.promoted_to(PieceType.QUEEN)
    assert queen == Piece(PieceType.QUEEN, Color.BLACK)
    assert pawn.type == PieceType.PAWN


def test_back_pieces_multiset() -> None:
    """Every side brings one queen, two rooks, two bishops, two knights"""
    assert sorted(BACK_PIECES) == sorted(
        [PieceType.QUEEN]
        + [PieceType.ROOK] * 2
        + [PieceType.BISHOP] * 2
        + [PieceType.KNIGHT] * 2
    )
