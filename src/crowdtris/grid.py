"""Grid engine: piece placement, collision, locking and line clears.

The board matrix is the single source of truth for rendering and collision.
The controllable piece is drawn into it as well, so every move erases the
piece, updates its placement and draws it again.  Pieces are never removed
once locked; the list keeps the full history of the current game until
:meth:`Grid.reset`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging
import random

from .board import EMPTY, HEIGHT, WIDTH, Board
from .commands import Intent
from .errors import PersistenceLoadError
from .piece import DEFAULT_SHAPES, Piece, Shape
from .utils import unique_in_order

LOGGER = logging.getLogger(__name__)

# Milliseconds between ticks.  Only used by drivers that loop; the simulation
# itself ignores it.
DEFAULT_INTERVAL_MS = 500


@dataclass
class TickOutcome:
    """What happened during one :meth:`Grid.tick`."""

    locked: bool = False
    overflowed: bool = False
    cleared_rows: List[int] = field(default_factory=list)
    spawned: bool = False


class Grid:
    """Falling-block playfield with its piece history."""

    def __init__(
        self,
        width: int = WIDTH,
        height: int = HEIGHT,
        interval: int = DEFAULT_INTERVAL_MS,
        paused: bool = False,
        *,
        shapes: Sequence[Shape] = DEFAULT_SHAPES,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.width = int(width)
        self.height = int(height)
        self.interval = interval
        self.paused = paused
        self.shapes = tuple(shapes)
        self.rng = rng or random.Random()
        if not self.shapes:
            raise ValueError("At least one spawn shape is required")
        largest = max(max(len(shape), len(shape[0])) for shape in self.shapes)
        if largest > min(self.width, self.height):
            raise ValueError(
                f"A {self.width}x{self.height} board cannot fit every rotation of the spawn shapes"
            )
        self.board = Board(self.width, self.height)
        self.pieces: List[Piece] = []
        self.reset()

    # State ------------------------------------------------------------
    @property
    def active_piece(self) -> Optional[Piece]:
        """Return the controllable piece, if there is one."""

        if self.pieces and not self.pieces[-1].fixed:
            return self.pieces[-1]
        return None

    def reset(self) -> None:
        """Empty the board, forget all pieces and spawn a fresh one."""

        LOGGER.debug("Resetting %dx%d board", self.width, self.height)
        self.pieces = []
        self.board.fill()
        self.spawn_piece(self.shapes)

    def spawn_piece(self, candidate_shapes: Optional[Sequence[Shape]] = None) -> Optional[Piece]:
        """Spawn a random piece just above the board.

        Returns the new piece, or ``None`` when there was no room for it and
        the grid was reset instead.
        """

        shape = self.rng.choice(list(candidate_shapes or self.shapes))
        piece = Piece(shape, rotation=self.rng.randrange(4))
        _, cols = piece.extent()
        piece.position = (-1, self.rng.randint(0, max(0, self.width - cols)))
        if self.collides(piece, 0, 0):
            LOGGER.info("No room to spawn a piece; starting a new game")
            self.reset()
            return None
        self.pieces.append(piece)
        self.draw_piece_to_board(piece)
        return piece

    # Geometry ---------------------------------------------------------
    def is_within_bounds(self, row: int, col: int) -> bool:
        return self.board.within_bounds(row, col)

    def collides(self, piece: Piece, d_row: int = 0, d_col: int = 0) -> bool:
        """Return ``True`` if ``piece`` shifted by the offsets would be blocked.

        Cells pushed past the sides or the bottom are blocked.  Cells above
        the board are allowed so pieces can fall in from the top.  A piece
        already placed on the grid never collides with the cells it covers;
        a piece not yet placed has no such cells.
        """

        placed = any(other is piece for other in self.pieces)
        own = piece.footprint() if placed else set()
        for row, col, _ in piece.occupied_cells():
            r, c = row + d_row, col + d_col
            if c < 0 or c >= self.width or r >= self.height:
                return True
            if r < 0 or (r, c) in own:
                continue
            if not self.board.is_empty(r, c):
                return True
        return False

    def should_lock(self, piece: Piece) -> bool:
        """Return ``True`` if ``piece`` rests on the floor or on settled cells."""

        if any(r >= self.height - 1 for r, _, _ in piece.occupied_cells()):
            return True

        projection = piece.project_cells()
        for i, line in enumerate(projection):
            for j, (r, c, value) in enumerate(line):
                if value is None:
                    continue
                if i + 1 < len(projection) and projection[i + 1][j][2] is not None:
                    continue
                if self.is_within_bounds(r + 1, c) and not self.board.is_empty(r + 1, c):
                    return True
        return False

    # Drawing ----------------------------------------------------------
    def clear_piece_from_board(self, piece: Piece) -> None:
        for r, c, _ in piece.occupied_cells():
            if self.is_within_bounds(r, c):
                self.board.set_cell(r, c, EMPTY)

    def draw_piece_to_board(self, piece: Piece) -> None:
        for r, c, value in piece.occupied_cells():
            if self.is_within_bounds(r, c):
                self.board.set_cell(r, c, value)

    def _shift(self, piece: Piece, d_row: int, d_col: int) -> None:
        self.clear_piece_from_board(piece)
        piece.translate(d_row, d_col)
        self.draw_piece_to_board(piece)

    def move(self, piece: Piece, d_row: int = 0, d_col: int = 0) -> bool:
        """Move ``piece`` unless the destination collides.

        Locked pieces keep their row; only the column offset is applied to
        them.  Returns ``True`` if the move was attempted.
        """

        if self.collides(piece, d_row, d_col):
            return False
        self._shift(piece, 0 if piece.fixed else d_row, d_col)
        return True

    # Line clears ------------------------------------------------------
    def rows_to_clear(self, piece: Piece) -> List[int]:
        """Return full rows spanned by ``piece``, excluding the top row."""

        rows = unique_in_order(r for line in piece.project_cells() for r, _, _ in line)
        return [r for r in rows if 0 < r < self.height and self.board.is_row_full(r)]

    def clear_rows(self, rows: Sequence[int]) -> None:
        """Collapse each row in ``rows`` in turn.

        Rows are processed one at a time in the given order, so each clear
        sees the board left behind by the previous one.
        """

        for row in rows:
            self.board.shift_down(row)

    # Update -----------------------------------------------------------
    def tick(
        self,
        candidate_shapes: Optional[Sequence[Shape]] = None,
        intent: Intent = Intent.NONE,
    ) -> TickOutcome:
        """Advance the game by one step, applying ``intent`` to the active piece."""

        outcome = TickOutcome()
        for piece in list(self.pieces):
            if piece.fixed:
                continue
            if self.should_lock(piece):
                piece.fixed = True
            self.move(piece, 1, 0)
            self.apply_intent(intent)

            if piece.fixed:
                outcome.locked = True
                if piece.top_row() <= 0:
                    LOGGER.info("Stack reached the top of the board; starting a new game")
                    self.reset()
                    outcome.overflowed = True
                    return outcome
                outcome.cleared_rows = self.rows_to_clear(piece)
                self.clear_rows(outcome.cleared_rows)
                if outcome.cleared_rows:
                    LOGGER.debug("Cleared rows %s", outcome.cleared_rows)

        if all(piece.fixed for piece in self.pieces):
            outcome.spawned = True
            if self.spawn_piece(candidate_shapes) is None:
                outcome.overflowed = True
        return outcome

    # Controls ---------------------------------------------------------
    def _last_piece(self) -> Optional[Piece]:
        return self.pieces[-1] if self.pieces else None

    def left(self) -> None:
        """Nudge the newest piece one column left if it is not at the edge."""

        piece = self._last_piece()
        if piece is not None and piece.position[1] > 0:
            self._shift(piece, 0, -1)

    def right(self) -> None:
        """Nudge the newest piece one column right if it is not at the edge."""

        piece = self._last_piece()
        if piece is None:
            return
        if max(c for line in piece.project_cells() for _, c, _ in line) < self.width - 1:
            self._shift(piece, 0, 1)

    def down(self) -> None:
        """Hard-drop the newest piece towards the floor."""

        piece = self._last_piece()
        if piece is None:
            return
        rows, _ = piece.extent()
        for _ in range(piece.position[0] + rows, self.height):
            self.move(piece, 1, 0)

    def _tilt(self, step: int) -> None:
        for piece in self.pieces:
            if piece.fixed:
                continue
            self.clear_piece_from_board(piece)
            piece.rotation += step
            rows, cols = piece.extent()
            row, col = piece.position
            piece.position = (min(row, self.height - rows), max(0, min(col, self.width - cols)))
            self.draw_piece_to_board(piece)

    def tilt_left(self) -> None:
        """Rotate the active piece one step (rotation + 1)."""

        self._tilt(1)

    def tilt_right(self) -> None:
        """Rotate the active piece one step back (rotation - 1)."""

        self._tilt(-1)

    def apply_intent(self, intent: Intent) -> None:
        actions: Dict[Intent, Callable[[], None]] = {
            Intent.LEFT: self.left,
            Intent.RIGHT: self.right,
            Intent.TILT_LEFT: self.tilt_left,
            Intent.SOFT_DROP: self.down,
        }
        action = actions.get(intent)
        if action is not None:
            LOGGER.debug("Applying %s", intent.value)
            action()

    # Output -----------------------------------------------------------
    def render_text(self, background: str = EMPTY) -> str:
        """Return the board as lines of symbols, empty cells as ``background``."""

        return self.board.render(background)

    def to_record(self) -> Dict[str, Any]:
        return {
            "pieces": [piece.to_record() for piece in self.pieces],
            "board": self.board.rows(),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any], **kwargs: Any) -> "Grid":
        """Rebuild a grid from :meth:`to_record` output.

        Board dimensions come from the stored board itself.  Records written
        with the older ``blocks``/``rows`` keys are accepted too.

        Raises:
            PersistenceLoadError: If the record is malformed.
        """

        try:
            rows = record["board"] if "board" in record else record["rows"]
            piece_records = record["pieces"] if "pieces" in record else record["blocks"]
            board = Board.from_rows(rows)
            pieces = [Piece.from_record(item) for item in piece_records]
            grid = cls(board.width, board.height, **kwargs)
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise PersistenceLoadError(f"Malformed saved state: {exc}") from exc
        grid.board = board
        grid.pieces = pieces
        return grid
