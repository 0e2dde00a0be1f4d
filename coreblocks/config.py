"""Game configuration and the built-in game modes."""

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence, Tuple

from coreblocks.board import Board
from coreblocks.piece import shape_cells
from coreblocks.rng import Selector, uniform_selector
from coreblocks.shapes import EXTENDED_SHAPES, FILLER_BLOCK, STANDARD_SHAPES, ShapeDefinition

if TYPE_CHECKING:
    from coreblocks.keys import Binding

MIN_WELL_WIDTH = 4
MIN_WELL_HEIGHT = 2


@dataclass(frozen=True)
class GameConfig:
    """Immutable settings for one game session.

    Attributes:
        max_level: Highest reachable level; also scales the first-level timer
        level_timer_step: Milliseconds the gravity timer shrinks per level
        lines_per_level: Lines needed per level-up
        points_per_line: Base points for each cleared line
        points_per_tspin: Bonus for a T-Spin (0 disables the bonus)
        points_per_bravo: Bonus per line for emptying the well
        well_width: Columns in the well
        well_height: Rows in the well
        allow_hold: Whether the hold slot is available
        shape_set: Shapes in play, indexed by shape id
        next_block_selector: Policy choosing the next shape id
        default_state: Optional factory for a pre-seeded well
        extra_key_bindings: (key, binding) pairs that override the defaults
    """

    max_level: int
    level_timer_step: int
    lines_per_level: int
    points_per_line: int
    points_per_tspin: int
    points_per_bravo: int
    well_width: int
    well_height: int
    allow_hold: bool
    shape_set: Sequence[ShapeDefinition]
    next_block_selector: Selector
    default_state: Optional[Callable[[], Board]] = None
    extra_key_bindings: Sequence[Tuple[str, "Binding"]] = ()

    def __post_init__(self):
        for name in ("max_level", "level_timer_step", "lines_per_level"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("points_per_line", "points_per_tspin", "points_per_bravo"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        if self.well_width < MIN_WELL_WIDTH or self.well_height < MIN_WELL_HEIGHT:
            raise ValueError(
                f"Well must be at least {MIN_WELL_WIDTH}x{MIN_WELL_HEIGHT}, "
                f"got {self.well_width}x{self.well_height}"
            )
        if not self.shape_set:
            raise ValueError("Shape set must not be empty")
        for shape in self.shape_set:
            right = max(x for x, _ in shape_cells(shape, self.spawn_column, 0, 0))
            if right >= self.well_width:
                raise ValueError(
                    f"Shape {shape.name or bin(shape.bits)} does not fit a "
                    f"{self.well_width}-wide well at its spawn column"
                )
        if not callable(self.next_block_selector):
            raise ValueError("next_block_selector must be callable")

        # Frozen dataclass: normalise sequences to tuples in place
        object.__setattr__(self, "shape_set", tuple(self.shape_set))
        object.__setattr__(self, "extra_key_bindings", tuple(self.extra_key_bindings or ()))

    @property
    def spawn_column(self) -> int:
        """Origin column of newly spawned pieces."""
        return (self.well_width - 2) // 2

    @property
    def level_timer_start(self) -> int:
        """Milliseconds per gravity step on level 1."""
        return self.max_level * self.level_timer_step

    def level_time(self, level: int) -> int:
        """Milliseconds per gravity step on ``level``, clamped to the timer range."""
        ms = self.level_timer_start - (level - 1) * self.level_timer_step
        return max(self.level_timer_step, min(self.level_timer_start, ms))

    def replace(self, **changes: Any) -> "GameConfig":
        return dataclasses.replace(self, **changes)


def head_start_board() -> Board:
    """A 10x24 well with a funnel of filler blocks open down the middle."""
    # Row at which each column's filler starts; None leaves the column empty
    starts = (1, 2, 3, 4, None, None, 4, 3, 2, 1)
    board = Board(10, 24)
    for x, start in enumerate(starts):
        if start is None:
            continue
        for y in range(start, board.height):
            board.set(x, y, FILLER_BLOCK)
    return board


CLASSIC = GameConfig(
    max_level=29,
    level_timer_step=75,
    lines_per_level=20,
    points_per_line=100,
    points_per_tspin=0,
    points_per_bravo=0,
    well_width=10,
    well_height=24,
    allow_hold=False,
    shape_set=STANDARD_SHAPES,
    next_block_selector=uniform_selector(len(STANDARD_SHAPES)),
)

STANDARD = CLASSIC.replace(
    allow_hold=True,
    points_per_tspin=400,
    points_per_bravo=800,
)

EXTENDED = STANDARD.replace(
    shape_set=EXTENDED_SHAPES,
    next_block_selector=uniform_selector(len(EXTENDED_SHAPES)),
)

HEAD_START = STANDARD.replace(default_state=head_start_board)

HUGE = STANDARD.replace(well_width=20)

# Menu order
GAME_MODES: Dict[str, GameConfig] = {
    "standard": STANDARD,
    "classic": CLASSIC,
    "extended": EXTENDED,
    "huge": HUGE,
    "head-start": HEAD_START,
}
