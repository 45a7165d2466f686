"""Unit tests for /src/kalas/placement.py"""

import random
from collections import Counter

import pytest

from src.core.shared_types import Color, PieceType
from src.kalas.placement import KALAS_ZONES, generate_starting_position, pick_random

EXPECTED_COUNTS = {
    PieceType.KING: 1,
    PieceType.QUEEN: 1,
    PieceType.ROOK: 2,
    PieceType.BISHOP: 2,
    PieceType.KNIGHT: 2,
    PieceType.PAWN: 8,
}


@pytest.mark.parametrize("seed", range(20))
def test_every_layout_has_32_pieces_with_the_right_multisets(seed: int) -> None:
    board = generate_starting_position(random.Random(seed))
    assert board.occupied_count() == 32
    for color in (Color.WHITE, Color.BLACK):
        counts = Counter(
            board.piece(index).type for index in board.locate_color(color)
        )
        assert counts == EXPECTED_COUNTS


@pytest.mark.parametrize("seed", range(20))
def test_every_piece_stays_in_its_zone(seed: int) -> None:
    board = generate_starting_position(random.Random(seed))
    for index in range(64):
        piece = board.piece(index)
        if piece is None:
            continue
        zones = KALAS_ZONES[piece.color]
        if piece.type == PieceType.KING:
            assert index in zones.king
        elif piece.type == PieceType.PAWN:
            assert index in zones.pawns
        else:
            assert index in zones.pieces


def test_kings_are_on_the_back_ranks(rng: random.Random) -> None:
    board = generate_starting_position(rng)
    assert 0 <= board.find_king(Color.WHITE) <= 7
    assert 56 <= board.find_king(Color.BLACK) <= 63


def test_same_seed_same_layout() -> None:
    first = generate_starting_position(random.Random(42))
    second = generate_starting_position(random.Random(42))
    assert first == second


def test_different_seeds_give_different_layouts() -> None:
    layouts = {generate_starting_position(random.Random(seed)).to_fen() for seed in range(10)}
    assert len(layouts) > 1


def test_pick_random_removes_the_picked_cell(rng: random.Random) -> None:
    cells = [3, 5, 7]
    picked = pick_random(cells, rng)
    assert picked in (3, 5, 7)
    assert picked not in cells
    assert len(cells) == 2
