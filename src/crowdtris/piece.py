"""Piece definitions and basic behaviour.

A piece pairs an immutable :data:`Shape` template with a mutable placement
(position, rotation and lock state).  Rotation is never baked into the shape;
the rotated cell pattern is read straight out of the template through index
arithmetic every time the piece is projected onto the board.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

Symbol = Optional[str]
Shape = Tuple[Tuple[Symbol, ...], ...]
Cell = Tuple[int, int, Symbol]  # (row, col, value)


# Spawn templates.  Every shape is a tight bounding box so each row and column
# of any rotation holds at least one occupied cell.
DEFAULT_SHAPES: Tuple[Shape, ...] = (
    (
        ("🟦", None, None),
        ("🟦", "🟦", "🟦"),
    ),
    (
        ("🟥", "🟥", "🟥"),
        ("🟥", None, None),
    ),
    (
        ("🟨", "🟨"),
        ("🟨", "🟨"),
    ),
    (("🟧", "🟧", "🟧", "🟧"),),
    (
        ("🟪", "🟪", "🟪"),
        (None, "🟪", None),
    ),
    (
        ("🟩", "🟩", None),
        (None, "🟩", "🟩"),
    ),
    (
        (None, "🟫", "🟫"),
        ("🟫", "🟫", None),
    ),
)


def as_shape(rows: Sequence[Sequence[Symbol]]) -> Shape:
    """Return ``rows`` as an immutable :data:`Shape`.

    Raises:
        ValueError: If ``rows`` is empty, not rectangular, holds anything
            other than strings and ``None``, or has no occupied cell.
    """

    shape = tuple(tuple(row) for row in rows)
    if not shape or not shape[0]:
        raise ValueError("Shape must have at least one cell")
    width = len(shape[0])
    if any(len(row) != width for row in shape):
        raise ValueError("Shape rows must all have the same length")
    cells = [cell for row in shape for cell in row]
    if any(cell is not None and not isinstance(cell, str) for cell in cells):
        raise ValueError("Shape cells must be strings or None")
    if all(cell is None for cell in cells):
        raise ValueError("Shape must have at least one occupied cell")
    return shape


def rotated_extent(shape: Shape, rotation: int) -> Tuple[int, int]:
    """Return ``(rows, cols)`` of ``shape`` after a normalised ``rotation``."""

    height, width = len(shape), len(shape[0])
    if rotation % 2:
        return width, height
    return height, width


def rotated_symbol(shape: Shape, rotation: int, i: int, j: int) -> Symbol:
    """Return the symbol shown at ``(i, j)`` of ``shape`` rotated by ``rotation``.

    ``rotation`` must already be normalised to ``0..3``.  Quarter turns swap
    the output dimensions; odd rotations are mirror images of each other:

    * ``1`` reads ``shape[j][w - 1 - i]``
    * ``2`` reads ``shape[h - 1 - i][w - 1 - j]``
    * ``3`` reads ``shape[h - 1 - j][i]``
    """

    height, width = len(shape), len(shape[0])
    if rotation == 0:
        return shape[i][j]
    if rotation == 1:
        return shape[j][width - 1 - i]
    if rotation == 2:
        return shape[height - 1 - i][width - 1 - j]
    return shape[height - 1 - j][i]


@dataclass
class Piece:
    """A placed, rotatable instance of a shape."""

    shape: Shape
    position: Tuple[int, int] = (-1, 0)  # (row, col)
    rotation: int = 0
    fixed: bool = False

    @property
    def normalized_rotation(self) -> int:
        """Rotation folded into ``0..3``.

        The stored value may be any integer; negative values use their
        magnitude so ``-1`` and ``1`` are the same orientation.
        """

        return abs(self.rotation) % 4

    def extent(self) -> Tuple[int, int]:
        """Return ``(rows, cols)`` of the rotated bounding box."""

        return rotated_extent(self.shape, self.normalized_rotation)

    def project_cells(self) -> List[List[Cell]]:
        """Return the rotated bounding box in absolute board coordinates.

        The result is rectangular; empty template cells are included with a
        ``None`` value.
        """

        rotation = self.normalized_rotation
        rows, cols = rotated_extent(self.shape, rotation)
        row, col = self.position
        return [
            [(row + i, col + j, rotated_symbol(self.shape, rotation, i, j)) for j in range(cols)]
            for i in range(rows)
        ]

    def occupied_cells(self) -> List[Cell]:
        """Return only the projected cells that hold a symbol."""

        return [cell for line in self.project_cells() for cell in line if cell[2] is not None]

    def footprint(self) -> Set[Tuple[int, int]]:
        """Return the ``(row, col)`` pairs currently covered by the piece."""

        return {(r, c) for r, c, _ in self.occupied_cells()}

    def top_row(self) -> int:
        """Return the smallest board row holding one of the piece's cells."""

        return min(r for r, _, _ in self.occupied_cells())

    def translate(self, d_row: int, d_col: int) -> None:
        """Shift the stored position by the given offsets."""

        row, col = self.position
        self.position = (row + d_row, col + d_col)

    def to_record(self) -> Dict[str, Any]:
        """Return a JSON-friendly record of the piece."""

        return {
            "shape": [list(row) for row in self.shape],
            "position": list(self.position),
            "rotation": self.rotation,
            "fixed": self.fixed,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Piece":
        """Rebuild a piece from :meth:`to_record` output.

        Raises:
            ValueError: If the shape or position is malformed.
            KeyError: If a required field is missing.
        """

        row, col = record["position"]
        return cls(
            shape=as_shape(record["shape"]),
            position=(int(row), int(col)),
            rotation=int(record.get("rotation", 0)),
            fixed=bool(record.get("fixed", False)),
        )
