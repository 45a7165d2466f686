"""
Computer opponent: fixed-depth minimax with alpha-beta pruning.

White maximizes the evaluation, black minimizes it. The search never touches the caller's Game:
it works on Game.search_copy() and walks the tree with the reversible apply_move()/undo_move() pair.
"""

import asyncio
import logging
import math
import random
from dataclasses import dataclass
from time import perf_counter
from typing import Callable, Optional

from src.ai.evaluation import MATE_SCORE, evaluate, sign
from src.core.config import AISettings
from src.core.shared_types import Color, Difficulty
from src.kalas.game import Game
from src.kalas.moves import Move

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]

DEPTH_BY_DIFFICULTY: dict[str, int] = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 3,
    Difficulty.HARD: 4,
}
DEFAULT_DEPTH = 3


def depth_for(difficulty: str) -> int:
    """Search depth in plies (half-moves). Unknown difficulties search like medium."""
    return DEPTH_BY_DIFFICULTY.get(difficulty, DEFAULT_DEPTH)


def order_moves(moves: list[Move]) -> list[Move]:
    """Captures first, otherwise keep the generation order. Raises alpha/beta early, so more gets pruned."""
    return sorted(moves, key=lambda move: not move.is_capture)


def mate_score(loser: Color, ply: int) -> int:
    """A lost position, worth slightly less the further away it is (so the fastest mate is preferred)"""
    return -sign(loser) * (MATE_SCORE - ply)


@dataclass(frozen=True)
class ScoredMove:
    move: Move
    score: float


class ChessAI:
    def __init__(
        self,
        difficulty: Optional[str] = None,
        rng: Optional[random.Random] = None,
        settings: Optional[AISettings] = None,
    ) -> None:
        self.settings = settings or AISettings()
        self.rng = rng or random.Random()
        self.positions_evaluated = 0
        self.difficulty = ""
        self.max_depth = DEFAULT_DEPTH
        self.set_difficulty(difficulty or self.settings.default_difficulty)

    def set_difficulty(self, difficulty: str) -> None:
        self.difficulty = difficulty
        self.max_depth = depth_for(difficulty)

    # --- MOVE SELECTION ---
    def find_best_move(
        self,
        game: Game,
        is_cancelled: Optional[CancelCheck] = None,
        time_limit_ms: Optional[int] = None,
    ) -> Optional[Move]:
        """
        Pick a move for the side to move. None means there is nothing to play (the game is decided).
        ----

        `is_cancelled` and `time_limit_ms` are checked between the candidate moves at the root.
        When either trips, the best move found so far is returned.
        """
        return self._search_position(game.search_copy(), is_cancelled, time_limit_ms)

    async def find_best_move_async(
        self, game: Game, min_delay_ms: Optional[int] = None
    ) -> Optional[Move]:
        """Same as find_best_move(), but never answers faster than `min_delay_ms` (so the opponent does not move instantly)"""
        delay_ms = self.settings.min_delay_ms if min_delay_ms is None else min_delay_ms
        start = perf_counter()
        # copy before leaving the event loop: the caller keeps ownership of `game`
        move = await asyncio.to_thread(self._search_position, game.search_copy())
        elapsed_ms = (perf_counter() - start) * 1000
        if elapsed_ms < delay_ms:
            await asyncio.sleep((delay_ms - elapsed_ms) / 1000)
        return move

    def _search_position(
        self,
        scratch: Game,
        is_cancelled: Optional[CancelCheck] = None,
        time_limit_ms: Optional[int] = None,
    ) -> Optional[Move]:
        self.positions_evaluated = 0
        start = perf_counter()

        mover = scratch.current_turn
        moves = scratch.all_moves(mover)
        if not moves:
            return None

        if (
            self.difficulty == Difficulty.EASY
            and self.rng.random() < self.settings.easy_random_move_rate
        ):
            return self.rng.choice(moves)

        should_stop = self._stop_check(is_cancelled, time_limit_ms)
        maximizing = mover == Color.WHITE
        ordered = order_moves(moves)
        scored: list[ScoredMove] = []
        for move in ordered:
            if should_stop():
                logger.info(
                    "AI (%s): search stopped after %d of %d root moves",
                    self.difficulty,
                    len(scored),
                    len(ordered),
                )
                break
            undo = scratch.apply_move(move.from_square, move.to_square)
            score = self._minimax(scratch, self.max_depth - 1, -math.inf, math.inf)
            scratch.undo_move(undo)
            scored.append(ScoredMove(move, score))

        if not scored:
            return ordered[0]

        best = self._best_of(scored, maximizing)
        elapsed_ms = (perf_counter() - start) * 1000
        logger.info(
            "AI (%s): evaluated %d positions in %dms",
            self.difficulty,
            self.positions_evaluated,
            elapsed_ms,
        )
        logger.info(
            "Best move: %d -> %d (score: %s)",
            best.move.from_square,
            best.move.to_square,
            best.score,
        )

        if (
            self.difficulty == Difficulty.MEDIUM
            and len(scored) > 1
            and self.rng.random() < self.settings.medium_blunder_rate
        ):
            return self._pick_from_top(scored, maximizing).move
        return best.move

    # --- SEARCH ---
    def _minimax(self, game: Game, depth: int, alpha: float, beta: float) -> float:
        """
        Alpha-beta minimax. The side to move decides whether we maximize (white) or minimize (black).
        ----

        Terminal nodes:
        * the side that just moved left its own king in check -> it lost (Kalas rule)
        * no legal moves -> checkmate if in check, else stalemate (0)
        """
        self.positions_evaluated += 1
        ply = self.max_depth - depth

        just_moved = game.current_turn.opponent
        if game.is_in_check(just_moved):
            return mate_score(just_moved, ply)

        if depth <= 0:
            return evaluate(game, noise=self._eval_noise(), rng=self.rng)

        color = game.current_turn
        moves = game.all_moves(color)
        if not moves:
            if game.is_in_check(color):
                return mate_score(color, ply)
            return 0

        if color == Color.WHITE:
            best = -math.inf
            for move in order_moves(moves):
                undo = game.apply_move(move.from_square, move.to_square)
                score = self._minimax(game, depth - 1, alpha, beta)
                game.undo_move(undo)

                best = max(best, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    break  # beta cutoff
            return best

        best = math.inf
        for move in order_moves(moves):
            undo = game.apply_move(move.from_square, move.to_square)
            score = self._minimax(game, depth - 1, alpha, beta)
            game.undo_move(undo)

            best = min(best, score)
            beta = min(beta, score)
            if beta <= alpha:
                break  # alpha cutoff
        return best

    # --- HELPERS ---
    def _eval_noise(self) -> int:
        return self.settings.easy_eval_noise if self.difficulty == Difficulty.EASY else 0

    @staticmethod
    def _best_of(scored: list[ScoredMove], maximizing: bool) -> ScoredMove:
        """First move with the best score for the mover (ties go to the earlier move)"""
        best = scored[0]
        for candidate in scored[1:]:
            if (maximizing and candidate.score > best.score) or (
                not maximizing and candidate.score < best.score
            ):
                best = candidate
        return best

    def _pick_from_top(self, scored: list[ScoredMove], maximizing: bool) -> ScoredMove:
        """Occasional 'human' mistake: any of the few best scored moves"""
        ranked = sorted(scored, key=lambda item: item.score, reverse=maximizing)
        return self.rng.choice(ranked[: self.settings.medium_blunder_pool])

    @staticmethod
    def _stop_check(
        is_cancelled: Optional[CancelCheck], time_limit_ms: Optional[int]
    ) -> CancelCheck:
        deadline = (
            perf_counter() + time_limit_ms / 1000 if time_limit_ms is not None else None
        )

        def should_stop() -> bool:
            if is_cancelled is not None and is_cancelled():
                return True
            return deadline is not None and perf_counter() >= deadline

        return should_stop
