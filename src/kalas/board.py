"""The Game board: 64 cells, each either empty (None) or holding a Piece"""

from dataclasses import dataclass
from typing import Optional, Self

from src.core.exceptions import InvalidStateError
from src.core.shared_types import Color, PieceType
from src.kalas.pieces import Piece
from src.kalas.square import BOARD_DIMENSIONS, BOARD_SIZE, Square

Cell = Optional[Piece]


@dataclass
class Board:
    cells: list[Cell]

    def __post_init__(self) -> None:
        if len(self.cells) != BOARD_SIZE:
            raise InvalidStateError(
                f"A board has exactly {BOARD_SIZE} cells, got {len(self.cells)}."
            )

    @classmethod
    def empty(cls) -> Self:
        return cls([None] * BOARD_SIZE)

    @classmethod
    def from_tags(cls, tags: list[Optional[str]]) -> Self:
        """Wire format: one-character piece tags ('K', 'q', ...) or None for an empty cell."""
        return cls([Piece.from_tag(tag) if tag else None for tag in tags])

    def to_tags(self) -> list[Optional[str]]:
        return [piece.to_tag() if piece else None for piece in self.cells]

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the placement part of a FEN string.

        ex. a lone white king on e1 and black king on e8:
        4k3/8/8/8/8/8/8/4K3
        means:
        * ranks are listed from the 8th down to the 1st, separated by slashes
        * within a rank, characters read from the a-file to the h-file
        * digits count consecutive empty cells
        * capital letters are white pieces, lower case letters black pieces

        Handy to set up positions, even though Kalas games never start from a fixed FEN.
        """
        board = cls.empty()
        fen_by_ranks = fen_str.split("/")
        if len(fen_by_ranks) != BOARD_DIMENSIONS[0]:
            raise InvalidStateError(f"Expected 8 ranks in {fen_str!r}")

        for rank_idx, fen_one_rank in enumerate(fen_by_ranks):
            row = BOARD_DIMENSIONS[0] - 1 - rank_idx
            col = 0
            for character in fen_one_rank:
                if character.isdigit():
                    col += int(character)
                    continue
                square = Square(row, col)
                if not square.is_within_bounds():
                    raise InvalidStateError(f"Rank {fen_one_rank!r} is too long")
                board.place_piece(Piece.from_tag(character), square.to_index())
                col += 1
            if col != BOARD_DIMENSIONS[1]:
                raise InvalidStateError(f"Rank {fen_one_rank!r} does not cover 8 files")
        return board

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(row) for row in range(BOARD_DIMENSIONS[0] - 1, -1, -1)
        )

    def _rank_to_fen(self, row: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            piece = self.piece(Square(row, col).to_index())
            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_tag())
            else:
                empty_count += 1

        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def copy(self) -> "Board":
        # Pieces are frozen, so a shallow copy of the cell list is enough
        return Board(list(self.cells))

    def piece(self, index: int) -> Cell:
        return self.cells[index]

    def is_empty(self, index: int) -> bool:
        return self.cells[index] is None

    def place_piece(self, piece: Piece, index: int) -> None:
        self.cells[index] = piece

    def remove_piece(self, index: int) -> Cell:
        removed = self.cells[index]
        self.cells[index] = None
        return removed

    def move_piece(self, from_index: int, to_index: int) -> Cell:
        """Update the position on the board. Returns whatever stood on the target cell."""
        captured = self.cells[to_index]
        self.cells[to_index] = self.cells[from_index]
        self.cells[from_index] = None
        return captured

    def locate_color(self, color: Color) -> list[int]:
        return [
            index
            for index, piece in enumerate(self.cells)
            if piece is not None and piece.color == color
        ]

    def locate_pieces(self, piece: Piece) -> list[int]:
        return [index for index, cell in enumerate(self.cells) if cell == piece]

    def find_king(self, color: Color) -> Optional[int]:
        kings = self.locate_pieces(Piece(PieceType.KING, color))
        return kings[0] if kings else None

    def occupied_count(self) -> int:
        return sum(1 for piece in self.cells if piece is not None)
