"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import random

import pytest

from src.kalas.board import Board
from src.kalas.game import Game

EMPTY_FEN = "/".join(["8"] * 8)


class FakeClock:
    """Stands in for the monotonic time source. Tests move time forward by hand."""

    def __init__(self, start_ms: int = 1_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def rng() -> random.Random:
    """Seeded, so random layouts and AI choices are reproducible"""
    return random.Random(1234)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def empty_board() -> Board:
    return Board.from_fen(EMPTY_FEN)


def game_from_fen(
    placement: str,
    turn_count: int = 10,
    time_control: int = 0,
    **kwargs,
) -> Game:
    """
    Game on a hand-made position. Past the opening by default (captures allowed) and untimed.
    Extra keyword arguments are set on the Game (ex. current_turn, en_passant_target).
    """
    game = Game.new_game(time_control=time_control)
    game.board = Board.from_fen(placement)
    game.turn_count = turn_count
    for key, value in kwargs.items():
        setattr(game, key, value)
    return game


@pytest.fixture
def make_game():
    """Factory fixture, see game_from_fen()"""
    return game_from_fen
