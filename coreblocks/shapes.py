"""Shape catalog.

Each shape is an 8-bit mask laid out as a 4-wide by 2-tall block. Bit index 0
is the most significant bit and indexes run row-major, so ``0b1100_1100`` is
the square: columns 0-1 of both rows.

Shapes whose bounding box is not symmetric about its centre carry a
pre-transform that nudges the origin for a given rotation index before the
bits are mapped to cells.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

# (rotation, x, y) -> (x, y)
PreTransform = Callable[[int, int, int], Tuple[int, int]]

SHAPE_WIDTH = 4
SHAPE_HEIGHT = 2
SHAPE_BITS = SHAPE_WIDTH * SHAPE_HEIGHT


def center_pre_transform(rotation: int, x: int, y: int) -> Tuple[int, int]:
    """Keep three-wide shapes pivoting around their middle cell."""
    if rotation == 1:
        return x + 1, y
    if rotation == 2:
        return x, y + 1
    if rotation == 3:
        return x, y - 1
    return x, y


def line_pre_transform(rotation: int, x: int, y: int) -> Tuple[int, int]:
    """Stand the line piece up in its third column instead of its second."""
    if rotation == 1:
        return x + 1, y
    return x, y


@dataclass(frozen=True)
class ShapeDefinition:
    """Immutable description of one shape.

    Attributes:
        bits: 4x2 occupancy mask
        name: Short display name
        pre_transform: Optional origin correction applied per rotation
        rotations: Number of distinct rotation states (1, 2 or 4)
        wide_kick: Whether rotation may try the two-column kick
        spin_bonus: Whether the shape is eligible for T-Spin detection
    """

    bits: int
    name: str = ""
    pre_transform: Optional[PreTransform] = None
    rotations: int = 4
    wide_kick: bool = False
    spin_bonus: bool = False

    def __post_init__(self):
        if not 0 < self.bits < (1 << SHAPE_BITS):
            raise ValueError(f"Shape bits must be a non-empty 8-bit mask, got {self.bits!r}")
        if self.rotations not in (1, 2, 4):
            raise ValueError(f"Invalid rotation count: {self.rotations}")

    @property
    def block_count(self) -> int:
        return bin(self.bits).count("1")


# Standard set; the index of each shape doubles as its colour.
STANDARD_SHAPES: Tuple[ShapeDefinition, ...] = (
    ShapeDefinition(0b1100_1100, "O", rotations=1),
    ShapeDefinition(0b1111_0000, "I", line_pre_transform, rotations=2, wide_kick=True),
    ShapeDefinition(0b0100_0111, "J"),
    ShapeDefinition(0b0010_1110, "L"),
    ShapeDefinition(0b1100_0110, "Z"),
    ShapeDefinition(0b0110_1100, "S"),
    ShapeDefinition(0b0100_1110, "T", center_pre_transform, spin_bonus=True),
)

EXTENDED_SHAPES: Tuple[ShapeDefinition, ...] = STANDARD_SHAPES + (
    ShapeDefinition(0b1001_1111, "C"),
    ShapeDefinition(0b0100_0110, "r", center_pre_transform),
    ShapeDefinition(0b1010_1110, "u", center_pre_transform),
    ShapeDefinition(0b0110_0000, "i"),
    ShapeDefinition(0b0010_0000, "."),
)

# Colour tag used by preset boards; not a shape of any set.
FILLER_BLOCK = 8
