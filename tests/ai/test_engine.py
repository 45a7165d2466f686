"""Unit tests for /src/ai/engine.py"""

import asyncio
import logging
import math
import random
from time import perf_counter

import pytest

from src.ai.engine import (
    ChessAI,
    ScoredMove,
    depth_for,
    mate_score,
    order_moves,
)
from src.ai.evaluation import MATE_SCORE
from src.core.config import AISettings
from src.core.shared_types import Color, Difficulty
from src.kalas.moves import Move
from src.kalas.square import algebraic_to_index as sq

HANGING_QUEEN = "4k3/8/8/3q4/8/8/8/3RK3"
WHITE_STUCK = "4k3/8/8/8/8/6pp/5pPP/6BK"  # turn 3: no captures, white cannot move
BLACK_IN_CHECK = "4k3/8/8/8/8/8/8/4R1K1"
# turn 2, black to move: Nd3-f2 leaves the boxed-in white king in check with no move at all
MATE_IN_ONE = "4k3/8/8/8/8/3n2pp/6PP/6BK"
# turn 2, white to move: every king move leaves black without a move, f7-f8 promotes instead
STALEMATE_TRAP = "6bk/5Ppp/6PP/8/8/8/8/4K3"


@pytest.fixture
def no_randomness() -> AISettings:
    """Pure search: no random moves, no deliberate mistakes, no noise"""
    return AISettings(
        easy_random_move_rate=0.0, medium_blunder_rate=0.0, easy_eval_noise=0
    )


# -- DIFFICULTY ---
@pytest.mark.parametrize(
    "difficulty, depth",
    [(Difficulty.EASY, 1), (Difficulty.MEDIUM, 3), (Difficulty.HARD, 4), ("expert", 3)],
)
def test_depth_per_difficulty(difficulty: str, depth: int) -> None:
    assert depth_for(difficulty) == depth
    assert ChessAI(difficulty).max_depth == depth


def test_set_difficulty() -> None:
    ai = ChessAI(Difficulty.EASY)
    ai.set_difficulty(Difficulty.HARD)
    assert ai.difficulty == Difficulty.HARD
    assert ai.max_depth == 4


def test_default_difficulty_comes_from_settings() -> None:
    ai = ChessAI(settings=AISettings(default_difficulty="hard"))
    assert ai.max_depth == 4


# -- HELPERS ---
def test_captures_are_searched_first() -> None:
    moves = [Move(0, 1), Move(2, 3, is_capture=True), Move(4, 5), Move(6, 7, is_capture=True)]
    assert order_moves(moves) == [moves[1], moves[3], moves[0], moves[2]]


def test_mate_score_prefers_faster_mates() -> None:
    assert mate_score(Color.BLACK, ply=1) == MATE_SCORE - 1
    assert mate_score(Color.WHITE, ply=1) == -(MATE_SCORE - 1)
    assert mate_score(Color.BLACK, ply=1) > mate_score(Color.BLACK, ply=3)


def test_pick_from_top_only_picks_the_best_few() -> None:
    ai = ChessAI(Difficulty.MEDIUM, rng=random.Random(5))
    scored = [ScoredMove(Move(i, i + 8), score) for i, score in enumerate([10, 50, 30, 40, -5])]
    best_three = {Move(1, 9), Move(3, 11), Move(2, 10)}
    picks = {ai._pick_from_top(scored, maximizing=True).move for _ in range(100)}
    assert picks <= best_three
    worst_three = {Move(4, 12), Move(0, 8), Move(2, 10)}
    picks = {ai._pick_from_top(scored, maximizing=False).move for _ in range(100)}
    assert picks <= worst_three


# -- SEARCH ---
@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD])
def test_takes_a_hanging_queen(make_game, no_randomness, difficulty: Difficulty) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(difficulty, rng=random.Random(0), settings=no_randomness)
    move = ai.find_best_move(game)
    assert move == Move(sq("d1"), sq("d5"), is_capture=True)
    assert ai.positions_evaluated > 0


def test_black_takes_a_hanging_queen(make_game, no_randomness) -> None:
    game = make_game("3rk3/8/8/8/3Q4/8/8/4K3", current_turn=Color.BLACK)
    ai = ChessAI(Difficulty.MEDIUM, settings=no_randomness)
    move = ai.find_best_move(game)
    assert (move.from_square, move.to_square) == (sq("d8"), sq("d4"))


def test_escapes_check(make_game, no_randomness) -> None:
    """Staying in check loses on the spot, so the search never does it"""
    game = make_game(BLACK_IN_CHECK, current_turn=Color.BLACK)
    ai = ChessAI(Difficulty.EASY, settings=no_randomness)
    move = ai.find_best_move(game)
    assert move.from_square == sq("e8")
    assert move.to_square in {sq("d8"), sq("d7"), sq("f8"), sq("f7")}


def test_finds_the_mate(make_game, no_randomness) -> None:
    game = make_game(MATE_IN_ONE, turn_count=2, current_turn=Color.BLACK)
    ai = ChessAI(Difficulty.MEDIUM, settings=no_randomness)
    move = ai.find_best_move(game)
    assert (move.from_square, move.to_square) == (sq("d3"), sq("f2"))

    scratch = game.search_copy()
    scratch.apply_move(sq("d3"), sq("f2"))
    assert not scratch.has_valid_moves(Color.WHITE)
    # white is mated one ply below the root
    score = ai._minimax(scratch, ai.max_depth - 1, -math.inf, math.inf)
    assert score == mate_score(Color.WHITE, ply=1) == -(MATE_SCORE - 1)


def test_avoids_stalemate_when_ahead(make_game, no_randomness) -> None:
    game = make_game(STALEMATE_TRAP, turn_count=2)
    ai = ChessAI(Difficulty.MEDIUM, settings=no_randomness)
    move = ai.find_best_move(game)
    assert (move.from_square, move.to_square) == (sq("f7"), sq("f8"))

    scratch = game.search_copy()
    scratch.apply_move(sq("e1"), sq("d1"))
    assert not scratch.has_valid_moves(Color.BLACK)
    assert not scratch.is_in_check(Color.BLACK)
    assert ai._minimax(scratch, ai.max_depth - 1, -math.inf, math.inf) == 0


def test_no_move_when_nothing_can_move(make_game) -> None:
    game = make_game(WHITE_STUCK, turn_count=3)
    assert not game.has_valid_moves(Color.WHITE)
    assert ChessAI(Difficulty.HARD).find_best_move(game) is None


def test_search_leaves_the_game_untouched(make_game, no_randomness) -> None:
    game = make_game(HANGING_QUEEN, time_control=10)
    before = game.get_state()
    ChessAI(Difficulty.MEDIUM, settings=no_randomness).find_best_move(game)
    assert game.get_state() == before


def test_easy_sometimes_plays_a_random_move(make_game) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(
        Difficulty.EASY, rng=random.Random(1), settings=AISettings(easy_random_move_rate=1.0)
    )
    move = ai.find_best_move(game)
    assert move in game.all_moves(Color.WHITE)
    assert ai.positions_evaluated == 0


def test_medium_blunders_among_the_top_moves(make_game) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(
        Difficulty.MEDIUM,
        rng=random.Random(2),
        settings=AISettings(medium_blunder_rate=1.0, medium_blunder_pool=1),
    )
    # a pool of one is the best move itself
    assert ai.find_best_move(game) == Move(sq("d1"), sq("d5"), is_capture=True)


def test_cancelled_search_still_returns_a_move(make_game) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(Difficulty.HARD)
    move = ai.find_best_move(game, is_cancelled=lambda: True)
    assert move in game.all_moves(Color.WHITE)
    assert ai.positions_evaluated == 0


def test_time_limit_stops_the_search(make_game) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(Difficulty.HARD)
    move = ai.find_best_move(game, time_limit_ms=0)
    assert move in game.all_moves(Color.WHITE)


def test_cancel_after_first_root_move(make_game, no_randomness) -> None:
    """Captures are searched first, so even one root move is enough to find the queen"""
    game = make_game(HANGING_QUEEN)
    calls = iter([False] + [True] * 100)
    ai = ChessAI(Difficulty.MEDIUM, settings=no_randomness)
    move = ai.find_best_move(game, is_cancelled=lambda: next(calls))
    assert move == Move(sq("d1"), sq("d5"), is_capture=True)


def test_search_is_logged(make_game, no_randomness, caplog) -> None:
    game = make_game(HANGING_QUEEN)
    with caplog.at_level(logging.INFO, logger="src.ai.engine"):
        ChessAI(Difficulty.EASY, settings=no_randomness).find_best_move(game)
    assert "evaluated" in caplog.text
    assert "Best move" in caplog.text


# -- ASYNC ---
def test_async_search_returns_the_same_move(make_game, no_randomness) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(Difficulty.MEDIUM, settings=no_randomness)
    move = asyncio.run(ai.find_best_move_async(game, min_delay_ms=0))
    assert move == Move(sq("d1"), sq("d5"), is_capture=True)


def test_async_search_waits_at_least_the_minimum_delay(make_game, no_randomness) -> None:
    game = make_game(HANGING_QUEEN)
    ai = ChessAI(Difficulty.EASY, settings=no_randomness)
    start = perf_counter()
    asyncio.run(ai.find_best_move_async(game, min_delay_ms=100))
    assert perf_counter() - start >= 0.09


def test_async_search_without_moves(make_game) -> None:
    game = make_game(WHITE_STUCK, turn_count=3)
    ai = ChessAI(Difficulty.MEDIUM)
    assert asyncio.run(ai.find_best_move_async(game, min_delay_ms=0)) is None
