"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Cells are addressed by index 0-63: 0 = a1, 7 = h1, 56 = a8, 63 = h8.
Square is the (row, col) view of an index, used whenever geometry matters.
"""

from __future__ import annotations

from dataclasses import dataclass

# Kalas chess is always played on 8x8
BOARD_DIMENSIONS = (8, 8)
BOARD_SIZE = BOARD_DIMENSIONS[0] * BOARD_DIMENSIONS[1]


@dataclass(frozen=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_index(cls, index: int) -> Square:
        return cls(index // BOARD_DIMENSIONS[1], index % BOARD_DIMENSIONS[1])

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (0,0) - (7,7)"""
        if len(sq) != 2 or not sq[1].isdigit():
            raise ValueError(f"Not a square name: {sq!r}")
        col = ord(sq[0].lower()) - ord("a")
        row = int(sq[1]) - 1
        square = cls(row, col)
        if not square.is_within_bounds():
            raise ValueError(f"Square {sq!r} is off the board")
        return square

    def to_index(self) -> int:
        return self.row * BOARD_DIMENSIONS[1] + self.col

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{self.row + 1}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    def shifted(self, d_row: int, d_col: int) -> Square:
        """NOTE: the result may be off the board. Callers check is_within_bounds()."""
        return Square(self.row + d_row, self.col + d_col)


def is_valid_index(index: int) -> bool:
    return 0 <= index < BOARD_SIZE


def index_to_algebraic(index: int) -> str:
    return Square.from_index(index).to_algebraic()


def algebraic_to_index(sq: str) -> int:
    return Square.from_algebraic(sq).to_index()
