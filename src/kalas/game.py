"""
The Game class is the entrypoint into the domain layer for the service layer (and for the AI).
It is responsible for orchestrating all the rules required to play a turn of Kalas Random Chess:
legal moves, executing a move, detecting the end of the game, and the players' clocks.

Errors are reported as return values (MoveResult / GameStatus), never raised to the caller,
so a match loop can react per move without unwinding control flow.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Self

from src.core.exceptions import (
    GameError,
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
)
from src.core.models import GameState, LastMoveModel, MoveRecordModel
from src.core.shared_types import Color, GameResult, PieceType
from src.kalas.board import Board
from src.kalas.clock import GameClock, TimeSource, format_time
from src.kalas.moves import (
    Move,
    MoveCandidate,
    candidate_moves,
    en_passant_capture_square,
    en_passant_moves,
    is_square_attacked,
    pawn_direction,
    promotion_row,
)
from src.kalas.pieces import Piece
from src.kalas.placement import generate_starting_position
from src.kalas.square import Square, is_valid_index

logger = logging.getLogger(__name__)

# Turns 1, 2 and 3 (white's first, black's first, white's second) are played without captures
CAPTURE_FREE_TURNS = 3
DEFAULT_TIME_CONTROL = 10


@dataclass(frozen=True)
class LastMove:
    from_square: int
    to_square: int


@dataclass(frozen=True)
class MoveRecord:
    """Entry in the move history. Never changed once appended."""

    from_square: int
    to_square: int
    piece: Piece
    captured: Optional[Piece]
    move_number: int
    is_en_passant: bool = False
    is_double_push: bool = False
    promotion: Optional[Piece] = None


@dataclass(frozen=True)
class GameStatus:
    game_over: bool
    result: Optional[GameResult] = None
    winner: Optional[Color] = None
    in_check: bool = False
    message: str = ""


@dataclass(frozen=True)
class MoveResult:
    success: bool
    error: Optional[str] = None
    move: Optional[MoveRecord] = None
    game_status: Optional[GameStatus] = None


@dataclass(frozen=True)
class MoveUndo:
    """Everything needed to take back a move made with Game.apply_move()"""

    from_square: int
    to_square: int
    moved: Piece
    captured: Optional[Piece]
    captured_square: int
    current_turn: Color
    move_number: int
    turn_count: int
    en_passant_target: Optional[int]


def _name(color: Color) -> str:
    return color.value.capitalize()


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE / AI ---

    board: Board = field(default_factory=Board.empty)
    clock: GameClock = field(default_factory=GameClock)
    current_turn: Color = Color.WHITE
    move_number: int = 1
    turn_count: int = 1
    game_over: bool = False
    winner: Optional[Color] = None
    last_move: Optional[LastMove] = None
    en_passant_target: Optional[int] = None
    move_history: list[MoveRecord] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    @classmethod
    def new_game(
        cls,
        time_control: int = DEFAULT_TIME_CONTROL,
        rng: Optional[random.Random] = None,
        now_ms: Optional[TimeSource] = None,
    ) -> Self:
        """A fresh game on an empty board. Call generate_starting_position() to set up the pieces."""
        clock = (
            GameClock(time_control, now_ms=now_ms)
            if now_ms
            else GameClock(time_control)
        )
        return cls(clock=clock, rng=rng or random.Random())

    @classmethod
    def from_state(
        cls,
        state: GameState,
        rng: Optional[random.Random] = None,
        now_ms: Optional[TimeSource] = None,
    ) -> Self:
        """Rebuild a Game from a snapshot produced by get_state()"""
        game = cls.new_game(
            time_control=state.time_control
            if state.time_control is not None
            else DEFAULT_TIME_CONTROL,
            rng=rng,
            now_ms=now_ms,
        )
        game.load_state(state)
        return game

    @property
    def time_control(self) -> int:
        return self.clock.time_control

    def generate_starting_position(self) -> Board:
        """Replace the board with a random Kalas layout"""
        self.board = generate_starting_position(self.rng)
        return self.board

    # -- MOVE QUERIES --
    def captures_allowed(self) -> bool:
        return self.turn_count > CAPTURE_FREE_TURNS

    def get_valid_moves(self, index: int) -> list[MoveCandidate]:
        """
        Legal destinations of the piece on the given square.
        ----

        Empty when the square is empty, holds a piece of the player not to move, or the piece is stuck.

        NOTE: Moves that leave your own king in check ARE included. Making one loses the game (see check_game_status).
        """
        if not is_valid_index(index):
            return []
        piece = self.board.piece(index)
        if piece is None or piece.color != self.current_turn:
            return []
        return self._moves_for(index, piece.color)

    def all_moves(self, color: Color) -> list[Move]:
        """Every legal move of one side, regardless of whose turn it is (capture restriction still applies)"""
        return [
            Move(index, candidate.to, candidate.is_capture)
            for index in self.board.locate_color(color)
            for candidate in self._moves_for(index, color)
        ]

    def has_valid_moves(self, color: Color) -> bool:
        return any(
            self._moves_for(index, color) for index in self.board.locate_color(color)
        )

    def find_king(self, color: Color) -> Optional[int]:
        return self.board.find_king(color)

    def is_square_attacked(self, index: int, by_color: Color) -> bool:
        return is_square_attacked(index, by_color, self.board)

    def is_in_check(self, color: Color) -> bool:
        king = self.find_king(color)
        if king is None:
            return False
        return self.is_square_attacked(king, color.opponent)

    # -- MAKING MOVES --
    def make_move(self, from_square: int, to_square: int) -> MoveResult:
        """
        Attempt to make a move
        -----

        1. validate (game still on, piece present, your turn, legal destination). Nothing changes on failure.
        2. update the board (taking en passant, auto-promotion to a queen)
        3. update en passant target, last move, move history
        4. charge the mover's clock, advance the counters, pass the turn
        5. check for the end of the game
        """
        try:
            candidate = self._validate_move(from_square, to_square)
        except GameError as err:
            return MoveResult(success=False, error=str(err))

        mover = self.current_turn
        record = self._update_board(from_square, candidate, mover)
        self.last_move = LastMove(from_square, to_square)
        self.move_history.append(record)

        # NOTE charge the clock BEFORE passing the turn, so the mover pays for the time spent
        self.clock.update(mover)
        self._advance_turn()
        self.clock.reset_timestamp()

        status = self.check_game_status()
        return MoveResult(success=True, move=record, game_status=status)

    def check_game_status(self) -> GameStatus:
        """
        Performs checks to see if game has ended and changes game_over/winner accordingly.

        NOTE the turn has already passed. The current player is the opponent of the player who just moved.
        """
        current = self.current_turn
        previous = current.opponent

        # Kalas rule: leaving your own king in check is not rejected, it loses on the spot
        if self.is_in_check(previous):
            return self._finish(
                GameResult.LEFT_IN_CHECK,
                winner=current,
                message=f"{_name(previous)} left their king in check and loses!",
            )

        in_check = self.is_in_check(current)
        if not self.has_valid_moves(current):
            if in_check:
                return self._finish(
                    GameResult.CHECKMATE,
                    winner=previous,
                    message=f"Checkmate! {_name(previous)} wins!",
                )
            return self._finish(
                GameResult.STALEMATE,
                winner=None,
                message="Stalemate! The game is a draw.",
            )

        if in_check:
            return GameStatus(
                game_over=False, in_check=True, message=f"{_name(current)} is in check!"
            )
        return GameStatus(game_over=False)

    def resign(self, color: Color) -> GameStatus:
        return self._finish(
            GameResult.RESIGNATION,
            winner=color.opponent,
            message=f"{_name(color)} resigned. {_name(color.opponent)} wins!",
        )

    # -- REVERSIBLE MOVES (SEARCH) --
    def apply_move(self, from_square: int, to_square: int) -> MoveUndo:
        """
        Play a move without validation, history or clock bookkeeping, and return how to take it back.
        ----

        Meant for search: the caller already got the move from all_moves() and must pair every
        apply_move() with an undo_move() in reverse order.
        """
        moved = self.board.piece(from_square)
        assert moved is not None
        is_pawn = moved.type == PieceType.PAWN

        # a pawn moving diagonally onto an empty en passant target takes the pawn behind it
        captured_square = to_square
        if (
            is_pawn
            and to_square == self.en_passant_target
            and self.board.is_empty(to_square)
            and Square.from_index(from_square).col != Square.from_index(to_square).col
        ):
            captured_square = en_passant_capture_square(to_square, moved.color)

        undo = MoveUndo(
            from_square=from_square,
            to_square=to_square,
            moved=moved,
            captured=self.board.piece(captured_square),
            captured_square=captured_square,
            current_turn=self.current_turn,
            move_number=self.move_number,
            turn_count=self.turn_count,
            en_passant_target=self.en_passant_target,
        )

        self.board.remove_piece(captured_square)
        self.board.move_piece(from_square, to_square)
        self._promote_if_needed(to_square, moved)
        is_double_push = is_pawn and abs(to_square - from_square) == 16
        self.en_passant_target = (
            from_square + 8 * pawn_direction(moved.color) if is_double_push else None
        )
        self._advance_turn()
        return undo

    def undo_move(self, undo: MoveUndo) -> None:
        self.board.remove_piece(undo.to_square)
        self.board.place_piece(undo.moved, undo.from_square)
        if undo.captured is not None:
            self.board.place_piece(undo.captured, undo.captured_square)
        self.current_turn = undo.current_turn
        self.move_number = undo.move_number
        self.turn_count = undo.turn_count
        self.en_passant_target = undo.en_passant_target

    def search_copy(self) -> "Game":
        """Scratch copy for the AI: same position and counters, no history, untimed."""
        return Game(
            board=self.board.copy(),
            clock=GameClock(0),
            current_turn=self.current_turn,
            move_number=self.move_number,
            turn_count=self.turn_count,
            en_passant_target=self.en_passant_target,
            rng=self.rng,
        )

    # -- TIMER --
    def is_untimed(self) -> bool:
        return self.clock.is_untimed()

    def start_timer(self) -> None:
        self.clock.start()

    def stop_timer(self) -> None:
        self.clock.stop(self.current_turn)

    def update_time(self) -> None:
        self.clock.update(self.current_turn)

    def check_timeout(self) -> Optional[GameStatus]:
        """Returns the timeout result if a player ran out of time, None otherwise (always None when untimed)"""
        if self.is_untimed():
            return None
        self.update_time()

        flagged = self.clock.flagged_color()
        if flagged is None:
            return None
        return self._finish(
            GameResult.TIMEOUT,
            winner=flagged.opponent,
            message=f"{_name(flagged)} ran out of time! {_name(flagged.opponent)} wins!",
        )

    def get_time_remaining(self, color: Color) -> int:
        self.update_time()
        return self.clock.remaining(color)

    def set_time(self, color: Color, time_ms: int) -> None:
        """Used to sync clocks with a remote copy of the game"""
        self.clock.set_time(color, time_ms)

    @staticmethod
    def format_time(ms: int) -> str:
        return format_time(ms)

    # -- STATE TRANSFER --
    def get_state(self) -> GameState:
        """Snapshot of the whole game. This is what gets sent over the wire."""
        self.update_time()
        return GameState(
            board=self.board.to_tags(),
            current_turn=self.current_turn,
            move_number=self.move_number,
            turn_count=self.turn_count,
            game_over=self.game_over,
            winner=self.winner,
            last_move=LastMoveModel(
                from_square=self.last_move.from_square,
                to_square=self.last_move.to_square,
            )
            if self.last_move
            else None,
            captures_allowed=self.captures_allowed(),
            move_history=[_record_to_model(record) for record in self.move_history],
            white_time=self.clock.white_time_ms,
            black_time=self.clock.black_time_ms,
            time_control=self.clock.time_control,
            en_passant_target=self.en_passant_target,
        )

    def load_state(self, state: GameState) -> None:
        """
        Overwrite this game with a snapshot.
        ----

        Fields missing from older snapshots fall back: the turn count is derived from the history,
        and clock values that are not sent keep their current value.
        """
        history = [_record_from_model(record) for record in state.move_history]
        self.board = Board.from_tags(state.board)
        self.current_turn = state.current_turn
        self.move_number = state.move_number
        self.turn_count = (
            state.turn_count if state.turn_count is not None else len(history) + 1
        )
        self.game_over = state.game_over
        self.winner = state.winner
        self.last_move = (
            LastMove(state.last_move.from_square, state.last_move.to_square)
            if state.last_move
            else None
        )
        self.move_history = history
        if state.time_control is not None:
            self.clock.time_control = state.time_control
        if state.white_time is not None:
            self.clock.white_time_ms = state.white_time
        if state.black_time is not None:
            self.clock.black_time_ms = state.black_time
        self.en_passant_target = state.en_passant_target

    # -- PRIVATE HELPERS ---
    def _moves_for(self, index: int, color: Color) -> list[MoveCandidate]:
        """
        Combines the following
        ----

        1. pseudo-legal moves of the piece (movement rules, see moves.py)
        2. en passant, for pawns
        3. capture restriction: no captures in the first turns of the game
        """
        piece = self.board.piece(index)
        moves = candidate_moves(index, self.board)
        if piece is not None and piece.type == PieceType.PAWN:
            moves.extend(en_passant_moves(index, color, self.en_passant_target))

        if not self.captures_allowed():
            moves = [move for move in moves if not move.is_capture]
        return moves

    def _validate_move(self, from_square: int, to_square: int) -> MoveCandidate:
        if self.game_over:
            raise GameStateError("Game is over")
        if not (is_valid_index(from_square) and is_valid_index(to_square)):
            raise IllegalMoveError("Square out of range")

        piece = self.board.piece(from_square)
        if piece is None:
            raise IllegalMoveError("No piece at source")
        if piece.color != self.current_turn:
            raise NotYourTurnError("Not your turn")

        candidate = next(
            (move for move in self.get_valid_moves(from_square) if move.to == to_square),
            None,
        )
        if candidate is None:
            raise IllegalMoveError("Invalid move")
        return candidate

    def _update_board(
        self, from_square: int, candidate: MoveCandidate, mover: Color
    ) -> MoveRecord:
        """Move the piece and return the record of what happened"""
        piece = self.board.piece(from_square)
        assert piece is not None

        if candidate.is_en_passant:
            # the pawn taken en passant is not on the landing square
            captured = self.board.remove_piece(
                en_passant_capture_square(candidate.to, mover)
            )
        else:
            captured = self.board.piece(candidate.to)

        self.board.move_piece(from_square, candidate.to)
        self.en_passant_target = (
            from_square + 8 * pawn_direction(mover) if candidate.is_double_push else None
        )
        promotion = self._promote_if_needed(candidate.to, piece)

        return MoveRecord(
            from_square=from_square,
            to_square=candidate.to,
            piece=piece,
            captured=captured,
            move_number=self.move_number,
            is_en_passant=candidate.is_en_passant,
            is_double_push=candidate.is_double_push,
            promotion=promotion,
        )

    def _promote_if_needed(self, index: int, piece: Piece) -> Optional[Piece]:
        """A pawn reaching the far rank always becomes a queen"""
        if piece.type != PieceType.PAWN:
            return None
        if Square.from_index(index).row != promotion_row(piece.color):
            return None
        queen = piece.promoted_to(PieceType.QUEEN)
        self.board.place_piece(queen, index)
        return queen

    def _advance_turn(self) -> None:
        if self.current_turn == Color.BLACK:
            self.move_number += 1
        self.turn_count += 1
        self.current_turn = self.current_turn.opponent

    def _finish(
        self, result: GameResult, winner: Optional[Color], message: str
    ) -> GameStatus:
        self.game_over = True
        self.winner = winner
        self.clock.halt()
        logger.info("Game over (%s): %s", result, message)
        return GameStatus(game_over=True, result=result, winner=winner, message=message)


# -- CONVERSIONS FROM/TO THE WIRE FORMAT --
def _tag(piece: Optional[Piece]) -> Optional[str]:
    return piece.to_tag() if piece else None


def _piece(tag: Optional[str]) -> Optional[Piece]:
    return Piece.from_tag(tag) if tag else None


def _record_to_model(record: MoveRecord) -> MoveRecordModel:
    return MoveRecordModel(
        from_square=record.from_square,
        to_square=record.to_square,
        piece=record.piece.to_tag(),
        captured=_tag(record.captured),
        move_number=record.move_number,
        is_en_passant=record.is_en_passant,
        is_double_push=record.is_double_push,
        promotion=_tag(record.promotion),
    )


def _record_from_model(model: MoveRecordModel) -> MoveRecord:
    return MoveRecord(
        from_square=model.from_square,
        to_square=model.to_square,
        piece=Piece.from_tag(model.piece),
        captured=_piece(model.captured),
        move_number=model.move_number,
        is_en_passant=model.is_en_passant,
        is_double_push=model.is_double_push,
        promotion=_piece(model.promotion),
    )
