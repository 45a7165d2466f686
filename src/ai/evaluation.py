"""
Static evaluation of a Kalas position.

Score is in centipawns, always from white's point of view: positive favors white, negative favors black.

    material + piece-square bonus + 5 * (white mobility - black mobility) + check bonus (+ noise)

The piece-square tables are written the way a board is printed, rank 8 on top. So index 0 is a8,
and a white piece on a1 (cell 0) reads entry 56. table_index() does that flip.
"""

import random
from typing import Optional

from src.core.shared_types import Color, PieceType
from src.kalas.game import Game
from src.kalas.pieces import Piece
from src.kalas.square import Square

PieceSquareTable = tuple[int, ...]

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 320,
    PieceType.BISHOP: 330,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 20000,
}

MATE_SCORE = 100_000
MOBILITY_WEIGHT = 5
CHECK_BONUS = 50

# fmt: off
PAWN_TABLE: PieceSquareTable = (
     0,  0,  0,  0,  0,  0,  0,  0,
    50, 50, 50, 50, 50, 50, 50, 50,
    10, 10, 20, 30, 30, 20, 10, 10,
     5,  5, 10, 25, 25, 10,  5,  5,
     0,  0,  0, 20, 20,  0,  0,  0,
     5, -5,-10,  0,  0,-10, -5,  5,
     5, 10, 10,-20,-20, 10, 10,  5,
     0,  0,  0,  0,  0,  0,  0,  0,
)

KNIGHT_TABLE: PieceSquareTable = (
    -50,-40,-30,-30,-30,-30,-40,-50,
    -40,-20,  0,  0,  0,  0,-20,-40,
    -30,  0, 10, 15, 15, 10,  0,-30,
    -30,  5, 15, 20, 20, 15,  5,-30,
    -30,  0, 15, 20, 20, 15,  0,-30,
    -30,  5, 10, 15, 15, 10,  5,-30,
    -40,-20,  0,  5,  5,  0,-20,-40,
    -50,-40,-30,-30,-30,-30,-40,-50,
)

BISHOP_TABLE: PieceSquareTable = (
    -20,-10,-10,-10,-10,-10,-10,-20,
    -10,  0,  0,  0,  0,  0,  0,-10,
    -10,  0,  5, 10, 10,  5,  0,-10,
    -10,  5,  5, 10, 10,  5,  5,-10,
    -10,  0, 10, 10, 10, 10,  0,-10,
    -10, 10, 10, 10, 10, 10, 10,-10,
    -10,  5,  0,  0,  0,  0,  5,-10,
    -20,-10,-10,-10,-10,-10,-10,-20,
)

ROOK_TABLE: PieceSquareTable = (
     0,  0,  0,  0,  0,  0,  0,  0,
     5, 10, 10, 10, 10, 10, 10,  5,
    -5,  0,  0,  0,  0,  0,  0, -5,
    -5,  0,  0,  0,  0,  0,  0, -5,
    -5,  0,  0,  0,  0,  0,  0, -5,
    -5,  0,  0,  0,  0,  0,  0, -5,
    -5,  0,  0,  0,  0,  0,  0, -5,
     0,  0,  0,  5,  5,  0,  0,  0,
)

QUEEN_TABLE: PieceSquareTable = (
    -20,-10,-10, -5, -5,-10,-10,-20,
    -10,  0,  0,  0,  0,  0,  0,-10,
    -10,  0,  5,  5,  5,  5,  0,-10,
     -5,  0,  5,  5,  5,  5,  0, -5,
      0,  0,  5,  5,  5,  5,  0, -5,
    -10,  5,  5,  5,  5,  5,  0,-10,
    -10,  0,  5,  0,  0,  0,  0,-10,
    -20,-10,-10, -5, -5,-10,-10,-20,
)

KING_TABLE: PieceSquareTable = (
    -30,-40,-40,-50,-50,-40,-40,-30,
    -30,-40,-40,-50,-50,-40,-40,-30,
    -30,-40,-40,-50,-50,-40,-40,-30,
    -30,-40,-40,-50,-50,-40,-40,-30,
    -20,-30,-30,-40,-40,-30,-30,-20,
    -10,-20,-20,-20,-20,-20,-20,-10,
     20, 20,  0,  0,  0,  0, 20, 20,
     20, 30, 10,  0,  0, 10, 30, 20,
)
# fmt: on

PIECE_SQUARE_TABLES: dict[PieceType, PieceSquareTable] = {
    PieceType.PAWN: PAWN_TABLE,
    PieceType.KNIGHT: KNIGHT_TABLE,
    PieceType.BISHOP: BISHOP_TABLE,
    PieceType.ROOK: ROOK_TABLE,
    PieceType.QUEEN: QUEEN_TABLE,
    PieceType.KING: KING_TABLE,
}


def table_index(index: int, color: Color) -> int:
    """Both colors read the tables from their own side of the board"""
    square = Square.from_index(index)
    if color == Color.WHITE:
        return (7 - square.row) * 8 + square.col
    return index


def sign(color: Color) -> int:
    return 1 if color == Color.WHITE else -1


def piece_score(piece: Piece, index: int) -> int:
    """Material + positional value of one piece, signed for its color"""
    table = PIECE_SQUARE_TABLES[piece.type]
    value = PIECE_VALUES[piece.type] + table[table_index(index, piece.color)]
    return sign(piece.color) * value


def material_and_position(game: Game) -> int:
    return sum(
        piece_score(piece, index)
        for index, piece in enumerate(game.board.cells)
        if piece is not None
    )


def mobility(game: Game) -> int:
    white_moves = len(game.all_moves(Color.WHITE))
    black_moves = len(game.all_moves(Color.BLACK))
    return MOBILITY_WEIGHT * (white_moves - black_moves)


def check_bonus(game: Game) -> int:
    """Giving check is rewarded"""
    score = 0
    if game.is_in_check(Color.BLACK):
        score += CHECK_BONUS
    if game.is_in_check(Color.WHITE):
        score -= CHECK_BONUS
    return score


def evaluate(
    game: Game, noise: int = 0, rng: Optional[random.Random] = None
) -> float:
    """
    Score the position. With `noise` > 0, a uniform perturbation in [-noise, noise] is added
    (makes the easy opponent less predictable).
    """
    if game.game_over:
        return 0 if game.winner is None else sign(game.winner) * MATE_SCORE

    score: float = material_and_position(game) + mobility(game) + check_bonus(game)
    if noise:
        score += (rng or random.Random()).uniform(-noise, noise)
    return score
