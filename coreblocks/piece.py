"""Piece geometry.

A single traversal maps a shape, an origin and a rotation index to the
absolute cells the shape covers. Drawing, collision and locking all consume
it.
"""

from typing import Iterator, List, Sequence, Tuple

from coreblocks.shapes import SHAPE_BITS, SHAPE_WIDTH, ShapeDefinition

Cell = Tuple[int, int]


def iter_cells(shape: ShapeDefinition, x: int, y: int, rotation: int) -> Iterator[Cell]:
    """Yield the absolute board cells covered by a shape.

    Args:
        shape: Shape definition
        x: Origin column
        y: Origin row (0 at top, may be negative above the well)
        rotation: Rotation index, taken modulo 4

    Yields:
        (x, y) tuples in bit order
    """
    r = rotation % 4
    if shape.pre_transform is not None:
        x, y = shape.pre_transform(r, x, y)

    for j in range(SHAPE_BITS):
        if not (shape.bits << j) & 0x80:
            continue
        col = j % SHAPE_WIDTH
        row = j // SHAPE_WIDTH
        if r == 0:
            yield x + col, y + row
        elif r == 1:
            yield x + (1 - row), y + col
        elif r == 2:
            yield x + (2 - col), y + (1 - row)
        else:
            yield x + row, y + (3 - col)


def shape_cells(shape: ShapeDefinition, x: int, y: int, rotation: int) -> List[Cell]:
    """Collect every cell produced by :func:`iter_cells`."""
    return list(iter_cells(shape, x, y, rotation))


class Piece:
    """A shape of a shape set at a specific position and rotation."""

    def __init__(
        self,
        shape_set: Sequence[ShapeDefinition],
        shape: int,
        x: int = 0,
        y: int = 0,
        rot: int = 0,
    ):
        """Initialize a piece.

        Args:
            shape_set: Shapes the id indexes into
            shape: Index of the shape in the set
            x: Origin column
            y: Origin row (negative while spawning above the well)
            rot: Rotation index, normalised to the shape's rotation count
        """
        if not 0 <= shape < len(shape_set):
            raise ValueError(f"Invalid shape id: {shape}")
        self.shape_set = shape_set
        self.shape = shape
        self.definition = shape_set[shape]
        self.x = x
        self.y = y
        self.rot = rot % self.definition.rotations

    def cells(self) -> Iterator[Cell]:
        return iter_cells(self.definition, self.x, self.y, self.rot)

    def get_cells(self) -> List[Cell]:
        """Get absolute board coordinates of all cells."""
        return list(self.cells())

    def moved(self, dx: int = 0, dy: int = 0, drot: int = 0) -> "Piece":
        """Return a new piece offset by the given deltas.

        Args:
            dx: Change in x
            dy: Change in y (positive is down)
            drot: Change in rotation (1 clockwise, -1 counter-clockwise)

        Returns:
            New piece at the resulting pose
        """
        return Piece(self.shape_set, self.shape, self.x + dx, self.y + dy, self.rot + drot)

    def __eq__(self, other):
        if not isinstance(other, Piece):
            return NotImplemented
        return (self.shape, self.x, self.y, self.rot) == (other.shape, other.x, other.y, other.rot)

    def __hash__(self):
        return hash((self.shape, self.x, self.y, self.rot))

    def __repr__(self) -> str:
        return f"Piece({self.definition.name or self.shape}, x={self.x}, y={self.y}, rot={self.rot})"
