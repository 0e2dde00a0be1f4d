"""Well state with collision detection and line clearing."""

from enum import Enum
from typing import Iterable, List, Optional, Sequence

from coreblocks.piece import Piece


class FitResult(Enum):
    """Outcome of testing a pose against the well."""
    FITS = "fits"
    BLOCKED = "blocked"              # Occupied cell, floor or above the top
    OUT_OF_BOUNDS = "out_of_bounds"  # Past a side wall


class Board:
    """Fixed-size well of optional block tags."""

    def __init__(self, width: int = 10, height: int = 24):
        """Initialize an empty well.

        Args:
            width: Number of columns
            height: Number of rows
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Board dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        # cells[y * width + x] is the cell at (x, y); None = empty
        self.cells: List[Optional[int]] = [None] * (width * height)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Optional[int]:
        """Get the block at (x, y), or None if empty or outside the well."""
        if not self.in_bounds(x, y):
            return None
        return self.cells[y * self.width + x]

    def set(self, x: int, y: int, value: Optional[int]) -> None:
        """Set the block at (x, y). Writes outside the well are ignored."""
        if self.in_bounds(x, y):
            self.cells[y * self.width + x] = value

    def is_occupied(self, x: int, y: int) -> bool:
        """Check whether a cell is solid. Cells outside the well are solid."""
        if not self.in_bounds(x, y):
            return True
        return self.cells[y * self.width + x] is not None

    def fits(self, piece: Piece) -> FitResult:
        """Classify a pose as fitting, blocked or out of bounds.

        Any cell past a side wall makes the pose out of bounds, even when an
        earlier cell was already blocked.

        Args:
            piece: Candidate pose

        Returns:
            FitResult for the pose
        """
        result = FitResult.FITS
        for x, y in piece.cells():
            if x < 0 or x >= self.width:
                return FitResult.OUT_OF_BOUNDS
            if result is FitResult.FITS and (
                y < 0 or y >= self.height or self.cells[y * self.width + x] is not None
            ):
                result = FitResult.BLOCKED
        return result

    def lock_piece(self, piece: Piece) -> None:
        """Write a piece's cells into the well, tagged with its shape id."""
        for x, y in piece.cells():
            self.set(x, y, piece.shape)

    def is_line_full(self, y: int) -> bool:
        for x in range(self.width):
            if self.cells[y * self.width + x] is None:
                return False
        return True

    def remove_line(self, line_y: int) -> None:
        """Remove a line and shift everything above it down by one.

        Args:
            line_y: Row to remove
        """
        w = self.width
        for y in range(line_y, 0, -1):
            self.cells[y * w:(y + 1) * w] = self.cells[(y - 1) * w:y * w]
        self.cells[0:w] = [None] * w

    def clear_lines(self) -> int:
        """Clear every complete line, scanning from the top.

        Returns:
            Number of lines cleared
        """
        lines_cleared = 0
        for y in range(self.height):
            if self.is_line_full(y):
                self.remove_line(y)
                lines_cleared += 1
        return lines_cleared

    def is_empty(self) -> bool:
        return all(cell is None for cell in self.cells)

    def copy(self) -> "Board":
        new_board = Board(self.width, self.height)
        new_board.cells = self.cells.copy()
        return new_board

    def to_rows(self) -> List[List[Optional[int]]]:
        """Export the well as a list of rows, top row first."""
        w = self.width
        return [self.cells[y * w:(y + 1) * w] for y in range(self.height)]

    @classmethod
    def from_rows(cls, rows: Sequence[Iterable[Optional[int]]]) -> "Board":
        """Create a board from rows, top row first.

        Args:
            rows: Equal-length rows of block tags or None

        Returns:
            New board
        """
        rows = [list(row) for row in rows]
        if not rows or not rows[0]:
            raise ValueError("Board needs at least one row and one column")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("All rows must have the same width")
        board = cls(width, len(rows))
        board.cells = [cell for row in rows for cell in row]
        return board

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return (self.width, self.height, self.cells) == (other.width, other.height, other.cells)

    def __repr__(self) -> str:
        return f"Board({self.width}x{self.height})"
