"""Board representation for the playfield."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray


# Default dimensions of a freshly constructed grid.
WIDTH = 10
HEIGHT = 18

# Marker stored in empty cells.  It doubles as the night-time background glyph
# so saved boards render without translation.
EMPTY = "⬛"
LIGHT_BACKGROUND = "⬜"

Cells = NDArray[np.object_]


def create_empty_cells(width: int, height: int) -> Cells:
    """Return a ``height x width`` cell matrix filled with :data:`EMPTY`."""

    return np.full((height, width), EMPTY, dtype=object)


class Board:
    """Matrix of cell symbols, ``EMPTY`` where nothing is drawn."""

    def __init__(self, width: int = WIDTH, height: int = HEIGHT) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Board dimensions must be positive")
        self.width = int(width)
        self.height = int(height)
        self.cells: Cells = create_empty_cells(self.width, self.height)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[str]]) -> "Board":
        """Build a board whose dimensions are taken from ``rows`` itself.

        Raises:
            ValueError: If ``rows`` is empty or ragged.
        """

        if not rows or not rows[0]:
            raise ValueError("Board rows must not be empty")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("Board rows must all have the same length")
        board = cls(width, len(rows))
        for r, row in enumerate(rows):
            board.cells[r, :] = [str(cell) for cell in row]
        return board

    def rows(self) -> List[List[str]]:
        """Return the cells as nested lists, suitable for JSON."""

        return self.cells.tolist()

    def fill(self) -> None:
        """Reset every cell to :data:`EMPTY`."""

        self.cells.fill(EMPTY)

    def within_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def get_cell(self, row: int, col: int) -> str:
        """Safely return the value at ``(row, col)``.

        Raises:
            IndexError: If the coordinates are outside the board.
        """
        if self.within_bounds(row, col):
            return self.cells[row, col]
        raise IndexError("Cell out of bounds")

    def set_cell(self, row: int, col: int, value: str) -> None:
        """Safely set the value at ``(row, col)``.

        Raises:
            IndexError: If the coordinates are outside the board.
        """
        if self.within_bounds(row, col):
            self.cells[row, col] = value
        else:
            raise IndexError("Cell out of bounds")

    def is_empty(self, row: int, col: int) -> bool:
        """Return ``True`` if the in-bounds cell at ``(row, col)`` is empty.

        Off-board coordinates are reported as not empty.
        """

        if self.within_bounds(row, col):
            return self.cells[row, col] == EMPTY
        return False

    def is_row_full(self, row: int) -> bool:
        return bool(np.all(self.cells[row] != EMPTY))

    def shift_down(self, row: int) -> None:
        """Overwrite ``row`` with the rows above it, moving each down by one.

        Row ``0`` keeps its contents; it is copied into row ``1`` but never
        blanked.
        """

        if row <= 0:
            return
        self.cells[1 : row + 1] = self.cells[0:row].copy()

    def render(self, background: str = EMPTY) -> str:
        """Return the board as text, one line per row."""

        return "\n".join(
            "".join(background if cell == EMPTY else cell for cell in row) for row in self.cells
        )
