"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define the pseudo-legal move sets for each piece type.

Turn-dependent rules (capture restriction, en passant availability) are applied later by Game
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.core.shared_types import Color, PieceType
from src.kalas.pieces import Piece
from src.kalas.square import Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, index: int) -> Optional[Piece]: ...
    def locate_color(self, color: Color) -> list[int]: ...


Vector = tuple[int, int]  # (d_row, d_col)


@dataclass(frozen=True)
class MoveCandidate:
    """A destination reachable by one piece. Transient: consumed straight away by validation or search."""

    to: int
    is_capture: bool = False
    is_en_passant: bool = False
    is_double_push: bool = False


@dataclass(frozen=True)
class Move:
    """A whole-side move: which piece goes where"""

    from_square: int
    to_square: int
    is_capture: bool = False


KNIGHT_DELTAS: list[Vector] = [
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
]
KING_DELTAS: list[Vector] = [
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
]
DIAGONALS: list[Vector] = [(-1, -1), (-1, 1), (1, -1), (1, 1)]
STRAIGHTS: list[Vector] = [(-1, 0), (1, 0), (0, -1), (0, 1)]


def pawn_direction(color: Color) -> int:
    """White moves UP the board (towards row 7), black moves DOWN"""
    return 1 if color == Color.WHITE else -1


def pawn_home_row(color: Color) -> int:
    return 1 if color == Color.WHITE else 6


def pawn_en_passant_row(color: Color) -> int:
    """The row a pawn must stand on to take en passant"""
    return 4 if color == Color.WHITE else 3


def promotion_row(color: Color) -> int:
    return 7 if color == Color.WHITE else 0


# --- MOVEMENT RULES ---
def raycasting_move(
    index: int, board: Board, directions: list[Vector]
) -> list[MoveCandidate]:
    """
    Raycasting algorithm
    -----

    ---
    We define move directions and move along them until we hit another piece or
    the edge of the board. An opponent's piece ends the ray with a capture, an own piece just ends it.
    """
    player_color = board.piece(index).color
    origin = Square.from_index(index)

    moves: list[MoveCandidate] = []
    for d_row, d_col in directions:
        target = origin.shifted(d_row, d_col)
        while target.is_within_bounds():
            target_index = target.to_index()
            occupant = board.piece(target_index)
            if occupant is None:
                moves.append(MoveCandidate(target_index))
            else:
                if occupant.color != player_color:
                    moves.append(MoveCandidate(target_index, is_capture=True))
                break
            target = target.shifted(d_row, d_col)
    return moves


def single_step_move(
    index: int, board: Board, deltas: list[Vector]
) -> list[MoveCandidate]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just jump a single step along a direction"""
    player_color = board.piece(index).color
    origin = Square.from_index(index)

    moves: list[MoveCandidate] = []
    for d_row, d_col in deltas:
        target = origin.shifted(d_row, d_col)
        if not target.is_within_bounds():
            continue

        target_index = target.to_index()
        occupant = board.piece(target_index)
        if occupant is None:
            moves.append(MoveCandidate(target_index))
        elif occupant.color != player_color:
            moves.append(MoveCandidate(target_index, is_capture=True))
    return moves


def pawn_attack_squares(index: int, color: Color) -> list[int]:
    """
    The squares a pawn threatens, whether or not anything stands there.

    NOTE: A pawn attacks diagonally but moves straight, so its threats cannot be read from its moves.
    """
    origin = Square.from_index(index)
    direction = pawn_direction(color)
    attacks: list[int] = []
    for d_col in (-1, 1):
        target = origin.shifted(direction, d_col)
        if target.is_within_bounds():
            attacks.append(target.to_index())
    return attacks


def candidate_pawn_moves(index: int, board: Board) -> list[MoveCandidate]:
    """
    A pawn:
    - moves by a single square forward onto an empty square
    - can move by two from its home rank, if both squares in front of it are empty
    - takes diagonally

    NOTE: En passant is added by the Game class, as it depends on the previous move
    """
    player_color = board.piece(index).color
    origin = Square.from_index(index)
    direction = pawn_direction(player_color)

    moves: list[MoveCandidate] = []
    one_step = origin.shifted(direction, 0)
    if one_step.is_within_bounds() and board.piece(one_step.to_index()) is None:
        moves.append(MoveCandidate(one_step.to_index()))

        two_steps = origin.shifted(2 * direction, 0)
        if (
            origin.row == pawn_home_row(player_color)
            and board.piece(two_steps.to_index()) is None
        ):
            moves.append(MoveCandidate(two_steps.to_index(), is_double_push=True))

    for target_index in pawn_attack_squares(index, player_color):
        occupant = board.piece(target_index)
        if occupant is not None and occupant.color != player_color:
            moves.append(MoveCandidate(target_index, is_capture=True))
    return moves


def candidate_knight_moves(index: int, board: Board) -> list[MoveCandidate]:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(index, board, KNIGHT_DELTAS)


def candidate_bishop_moves(index: int, board: Board) -> list[MoveCandidate]:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(index, board, DIAGONALS)


def candidate_rook_moves(index: int, board: Board) -> list[MoveCandidate]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(index, board, STRAIGHTS)


def candidate_queen_moves(index: int, board: Board) -> list[MoveCandidate]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_move(index, board, DIAGONALS + STRAIGHTS)


def candidate_king_moves(index: int, board: Board) -> list[MoveCandidate]:
    """The king can move by a single square at the time. (No castling in Kalas chess.)"""
    return single_step_move(index, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[int, Board], list[MoveCandidate]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


def candidate_moves(index: int, board: Board) -> list[MoveCandidate]:
    """Pseudo-legal moves of whatever piece stands on the square (none for an empty square)"""
    piece = board.piece(index)
    if piece is None:
        return []
    return MOVEMENT_RULES[piece.type](index, board)


# -- EN PASSANT MOVES ---
def en_passant_moves(
    index: int, color: Color, en_passant_target: Optional[int]
) -> list[MoveCandidate]:
    """
    A pawn on its en passant row, on a file adjacent to the target square, can take en passant.
    The target must be ahead of the pawn: our own skipped square is never a target for us.

    NOTE: the target square is the square the opponent's pawn skipped over, so it is also where our pawn lands.
    """
    if en_passant_target is None:
        return []
    origin = Square.from_index(index)
    target = Square.from_index(en_passant_target)
    if (
        origin.row == pawn_en_passant_row(color)
        and target.row == origin.row + pawn_direction(color)
        and abs(origin.col - target.col) == 1
    ):
        return [MoveCandidate(en_passant_target, is_capture=True, is_en_passant=True)]
    return []


def en_passant_capture_square(to_index: int, color: Color) -> int:
    """The opponent pawn taken en passant stands right behind the landing square"""
    return to_index - 8 * pawn_direction(color)


# --- ATTACKING RULES ---
def attacked_squares(index: int, board: Board) -> list[int]:
    """All squares the piece on `index` threatens. Pawns threaten their diagonals, others their move targets."""
    piece = board.piece(index)
    if piece is None:
        return []
    if piece.type == PieceType.PAWN:
        return pawn_attack_squares(index, piece.color)
    return [move.to for move in MOVEMENT_RULES[piece.type](index, board)]


def is_square_attacked(index: int, by_color: Color, board: Board) -> bool:
    """Is the square in the line of sight of any of `by_color`'s pieces?"""
    return any(
        index in attacked_squares(attacker, board)
        for attacker in board.locate_color(by_color)
    )
