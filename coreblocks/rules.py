"""Rotation kicks, T-Spin detection and scoring rules.

Kicks use one fixed table for every rotation transition rather than the
per-state tables of the Super Rotation System.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from coreblocks.board import Board, FitResult
from coreblocks.config import GameConfig
from coreblocks.piece import Piece
from coreblocks.shapes import ShapeDefinition

# Offsets tried, in order, after an in-place rotation fails.
# y grows downwards, so (-1, -1) is left and up.
KICK_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, 0),
    (-1, -1),
    (-1, 1),
    (-2, 0),   # wide_kick shapes only
    (1, 0),
    (1, 1),
    (1, -1),
    (0, 1),
)


def kick_offsets(shape: ShapeDefinition) -> Iterator[Tuple[int, int]]:
    """Yield the offsets a rotation of ``shape`` may try, in place first."""
    yield 0, 0
    for dx, dy in KICK_OFFSETS:
        if abs(dx) > 1 and not shape.wide_kick:
            continue
        yield dx, dy


def try_rotate(board: Board, piece: Piece, direction: int) -> Optional[Piece]:
    """Attempt to rotate a piece, kicking it into a nearby legal pose.

    Args:
        board: Current well
        piece: Piece to rotate
        direction: 1 for clockwise, -1 for counter-clockwise

    Returns:
        Rotated piece if some pose fits, None if the rotation is rejected
    """
    for dx, dy in kick_offsets(piece.definition):
        candidate = piece.moved(dx, dy, direction)
        if board.fits(candidate) is FitResult.FITS:
            return candidate
    return None


def landing_row(board: Board, piece: Piece) -> int:
    """Get the lowest row the piece can fall to from where it is.

    Returns:
        Origin y of the landing pose (the current y if it cannot descend)
    """
    n = 1
    while board.fits(piece.moved(0, n)) is FitResult.FITS:
        n += 1
    return piece.y + n - 1


def check_tspin(board: Board, piece: Piece) -> bool:
    """Test the corner cells that make a locked spin-shape a T-Spin.

    Only the geometry is checked here; the caller decides whether the last
    action was a rotation.

    Args:
        board: Well with the piece already locked into it
        piece: The locked piece

    Returns:
        True if the corner pattern for the piece's rotation is satisfied
    """
    x, y = piece.x, piece.y
    occ = board.is_occupied

    if piece.rot in (0, 2):
        top = occ(x, y) ^ occ(x + 2, y)
        if y >= board.height - 2:
            return top
        return top and occ(x, y + 2) and occ(x + 2, y + 2)
    if piece.rot == 1:
        return occ(x + 2, y) and occ(x, y + 2) and occ(x + 2, y + 2)
    if piece.rot == 3:
        return occ(x, y) and occ(x, y + 2) and occ(x + 2, y + 2)
    return False


@dataclass
class ClearResult:
    """Outcome of scoring one locked piece."""
    lines: int
    points: int
    combo: int
    tspin: bool = False
    bravo: bool = False
    level_up: bool = False


class Scoring:
    """Score, line, combo and level bookkeeping for a session."""

    def __init__(self, config: GameConfig):
        self.config = config
        self.level = 1
        self.score = 0
        self.lines = 0
        self.combo = 0

    def award_tspin(self) -> int:
        """Add the immediate T-Spin bonus.

        Returns:
            Points awarded
        """
        points = self.config.points_per_tspin
        self.score += points
        return points

    def award_lines(self, lines: int, tspin: bool = False, bravo: bool = False) -> ClearResult:
        """Score a lock that cleared ``lines`` rows.

        A lock that clears nothing resets the combo. Level goes up by at most
        one per call, even when a single clear crosses several thresholds.

        Args:
            lines: Rows cleared by the lock
            tspin: Whether the lock was a T-Spin
            bravo: Whether the well is empty after the clear

        Returns:
            ClearResult describing what was awarded
        """
        if lines <= 0:
            self.combo = 0
            return ClearResult(lines=0, points=0, combo=0, tspin=tspin)

        self.lines += lines
        self.combo += 1

        points = lines * self.config.points_per_line * self.combo
        if tspin:
            points += self.config.points_per_tspin * lines
        if bravo:
            points += self.config.points_per_bravo * lines
        self.score += points

        level_up = False
        if self.lines > self.level * self.config.lines_per_level and self.level < self.config.max_level:
            self.level += 1
            level_up = True

        return ClearResult(lines, points, self.combo, tspin, bravo, level_up)
