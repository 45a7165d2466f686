"""
Kalas starting positions
----

Instead of the classical setup, every game starts from a random layout. Each piece type may only be
dropped inside its own zone:

* King: the back rank (rank 1 for white, rank 8 for black)
* Pawns: ranks 2-4 for white, ranks 4-7 for black (never on top of a white pawn)
* Other pieces (Q, R, R, B, B, N, N): ranks 1-3 for white, ranks 6-8 for black, on whatever is still empty

White is placed first, then black.
"""

import logging
import random
from dataclasses import dataclass

from src.core.shared_types import Color, PieceType
from src.kalas.board import Board
from src.kalas.pieces import BACK_PIECES, Piece

logger = logging.getLogger(__name__)

PAWNS_PER_SIDE = 8


@dataclass(frozen=True)
class PlacementZones:
    king: range
    pawns: range
    pieces: range


KALAS_ZONES: dict[Color, PlacementZones] = {
    Color.WHITE: PlacementZones(king=range(0, 8), pawns=range(8, 32), pieces=range(0, 24)),
    Color.BLACK: PlacementZones(king=range(56, 64), pawns=range(24, 56), pieces=range(40, 64)),
}


def pick_random(cells: list[int], rng: random.Random) -> int:
    """Uniformly pick one cell and remove it from the list"""
    return cells.pop(rng.randrange(len(cells)))


def place_side(board: Board, color: Color, rng: random.Random) -> None:
    """Drop the 16 pieces of one color onto the board, each inside its zone."""
    zones = KALAS_ZONES[color]

    king_zone = list(zones.king)
    king_cell = pick_random(king_zone, rng)
    board.place_piece(Piece(PieceType.KING, color), king_cell)

    # Only empty cells: black's pawn zone overlaps white's on rank 4
    pawn_zone = [cell for cell in zones.pawns if board.is_empty(cell)]
    for _ in range(PAWNS_PER_SIDE):
        board.place_piece(Piece(PieceType.PAWN, color), pick_random(pawn_zone, rng))

    piece_zone = [cell for cell in zones.pieces if board.is_empty(cell)]
    for piece_type in BACK_PIECES:
        board.place_piece(Piece(piece_type, color), pick_random(piece_zone, rng))


def generate_starting_position(rng: random.Random) -> Board:
    """A fresh random Kalas layout: 32 pieces, no two on the same cell."""
    board = Board.empty()
    for color in (Color.WHITE, Color.BLACK):
        place_side(board, color, rng)
    logger.debug("Generated starting position %s", board.to_fen())
    return board
