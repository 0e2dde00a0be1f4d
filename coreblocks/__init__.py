"""CoreBlocks: a falling-block puzzle game for the terminal."""

from coreblocks.board import Board, FitResult
from coreblocks.config import GAME_MODES, GameConfig
from coreblocks.field import GameField
from coreblocks.piece import Piece
from coreblocks.rng import bag_selector, no_repeat_selector, uniform_selector
from coreblocks.shapes import EXTENDED_SHAPES, STANDARD_SHAPES, ShapeDefinition

__all__ = [
    "Board",
    "FitResult",
    "GAME_MODES",
    "GameConfig",
    "GameField",
    "Piece",
    "ShapeDefinition",
    "STANDARD_SHAPES",
    "EXTENDED_SHAPES",
    "bag_selector",
    "no_repeat_selector",
    "uniform_selector",
]
