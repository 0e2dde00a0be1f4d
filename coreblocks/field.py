"""Game session: piece state, player actions and the two game loops.

A session runs two asyncio tasks. The gravity loop spawns pieces, drops them
one row per level tick and locks them; the input loop reads keys and
dispatches them to actions. Every change to the piece or the well happens
under the field's lock. The gravity tick is a race between the level timer
and a break gate that hard drop and hold open to skip the rest of the wait.
"""

import asyncio
import logging
import random
import threading
from typing import Dict, Optional

from coreblocks.board import Board, FitResult
from coreblocks.config import GameConfig
from coreblocks.drawing import SHADOW_BLOCK, GameDrawing, NullDrawing
from coreblocks.keys import DEFAULT_KEY_BINDINGS, Action, Binding, KeySource, QueueKeySource
from coreblocks.piece import Piece
from coreblocks.rules import ClearResult, Scoring, check_tspin, landing_row, try_rotate
from coreblocks.sync import Gate

logger = logging.getLogger(__name__)

# Scoreboard and message lines, as offsets from the top of the well
MSG_SPECIAL = 6
MSG_BONUS = 7
MSG_LINES = 8
MSG_COMBO = 9
MSG_TOTAL = 11
MSG_LEVEL_UP = 14
BOARD_LEVEL = 20
BOARD_LINES = 21
BOARD_SCORE_LABEL = 23
BOARD_SCORE = 24

HOLD_PREVIEW = (-6, 2)


class GameField:
    """A single game session."""

    def __init__(
        self,
        config: GameConfig,
        drawing: Optional[GameDrawing] = None,
        keys: Optional[KeySource] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize a session.

        Args:
            config: Game configuration
            drawing: Renderer (draws nothing if omitted)
            keys: Key source for the input loop (an empty queue if omitted)
            rng: Random source handed to the next-shape selector

        Raises:
            ValueError: If the configured default state does not match the well size
        """
        self.config = config
        self.drawing = drawing or NullDrawing()
        self.keys = keys or QueueKeySource()
        self.rng = rng or random.Random()

        self.board = self._initial_board()
        self.scoring = Scoring(config)

        self.piece: Optional[Piece] = None
        self.next_shape: Optional[int] = None
        self.hold: Optional[int] = None
        self.hold_used = False
        self.rotate_move = False
        self.keep_playing = True
        self.key_bindings: Dict[str, Binding] = {}

        self._lock = threading.RLock()
        self._pause = Gate(is_open=True)
        self._breaker = Gate(is_open=False)

    def _initial_board(self) -> Board:
        if self.config.default_state is None:
            return Board(self.config.well_width, self.config.well_height)
        board = self.config.default_state()
        if (board.width, board.height) != (self.config.well_width, self.config.well_height):
            raise ValueError(
                f"Default state is {board.width}x{board.height}, "
                f"well is {self.config.well_width}x{self.config.well_height}"
            )
        return board

    @property
    def level(self) -> int:
        return self.scoring.level

    @level.setter
    def level(self, value: int) -> None:
        self.scoring.level = value

    @property
    def score(self) -> int:
        return self.scoring.score

    @property
    def lines(self) -> int:
        return self.scoring.lines

    @property
    def combo(self) -> int:
        return self.scoring.combo

    @property
    def is_paused(self) -> bool:
        return not self._pause.is_open

    def level_time(self) -> int:
        """Milliseconds per gravity step at the current level."""
        return self.config.level_time(self.level)

    # Drawing helpers

    def _draw_piece(self, piece: Piece, block: Optional[int] = None) -> None:
        for x, y in piece.cells():
            self.drawing.draw_block(piece.shape if block is None else block, x, y)

    def _clear_piece(self, piece: Piece) -> None:
        for x, y in piece.cells():
            self.drawing.clear_block(x, y)

    def _shadow(self) -> Optional[Piece]:
        bottom = landing_row(self.board, self.piece)
        if bottom > self.piece.y:
            return self.piece.moved(0, bottom - self.piece.y)
        return None

    def _draw_active(self) -> None:
        shadow = self._shadow()
        if shadow is not None:
            self._draw_piece(shadow, SHADOW_BLOCK)
        self._draw_piece(self.piece)

    def _clear_active(self) -> None:
        shadow = self._shadow()
        if shadow is not None:
            self._clear_piece(shadow)
        self._clear_piece(self.piece)

    def _draw_well(self) -> None:
        for x in range(self.board.width):
            for y in range(self.board.height):
                block = self.board.get(x, y)
                if block is None:
                    self.drawing.clear_block(x, y)
                else:
                    self.drawing.draw_block(block, x, y)

    def _next_preview(self, shape: int) -> Piece:
        return Piece(self.config.shape_set, shape, self.config.well_width + 2, 2)

    def _hold_preview(self, shape: int) -> Piece:
        return Piece(self.config.shape_set, shape, *HOLD_PREVIEW)

    def _update_scoreboard(self) -> None:
        self.drawing.put_message(f"Level {self.level}", BOARD_LEVEL)
        self.drawing.put_message(f"{self.lines} lines", BOARD_LINES)
        self.drawing.put_message("Score:", BOARD_SCORE_LABEL)
        self.drawing.put_message(str(self.score), BOARD_SCORE)

    # Piece state

    def fits(self, dx: int = 0, dy: int = 0, drot: int = 0) -> FitResult:
        """Test the active piece moved by the given deltas.

        Args:
            dx: Change in x
            dy: Change in y (positive is down)
            drot: Change in rotation

        Returns:
            FitResult for the candidate pose
        """
        with self._lock:
            return self.board.fits(self.piece.moved(dx, dy, drot))

    def _place(self, candidate: Piece) -> None:
        with self._lock:
            self._clear_active()
            self.piece = candidate
            self._draw_active()

    def move(self, dx: int, dy: int) -> bool:
        """Move the active piece if the new position fits.

        Returns:
            True if the piece moved
        """
        with self._lock:
            candidate = self.piece.moved(dx, dy)
            if self.board.fits(candidate) is not FitResult.FITS:
                return False
            self._place(candidate)
        return True

    def rotate(self, direction: int) -> bool:
        """Rotate the active piece, trying kicks if it does not fit in place.

        Args:
            direction: 1 for clockwise, -1 for counter-clockwise

        Returns:
            True if the piece rotated
        """
        with self._lock:
            candidate = try_rotate(self.board, self.piece, direction)
            if candidate is None:
                return False
            self._place(candidate)
        return True

    def spawn(self, shape: int) -> Piece:
        """Make ``shape`` the active piece at the spawn point, above the well."""
        with self._lock:
            self.piece = Piece(self.config.shape_set, shape, self.config.spawn_column, -1)
        logger.debug(f"Spawned {self.piece}")
        return self.piece

    def _pick_next(self) -> int:
        return self.config.next_block_selector(self.next_shape, self.rng)

    def spawn_next(self) -> Piece:
        """Spawn the previewed shape and choose a new one for the preview."""
        with self._lock:
            if self.next_shape is None:
                self.next_shape = self._pick_next()
            previous = self.next_shape
            self.spawn(previous)
            self._clear_piece(self._next_preview(previous))
            self.next_shape = self._pick_next()
            self._draw_piece(self._next_preview(self.next_shape))
            return self.piece

    def lock_current(self) -> ClearResult:
        """Lock the active piece into the well and score the result.

        Returns:
            ClearResult for the lock
        """
        with self._lock:
            piece = self.piece
            self.hold_used = False
            self.board.lock_piece(piece)
            logger.debug(f"Locked {piece}")
            return self._check_lines(piece)

    def _check_lines(self, piece: Piece) -> ClearResult:
        tspin = piece.definition.spin_bonus and self.rotate_move and check_tspin(self.board, piece)
        if tspin:
            points = self.scoring.award_tspin()
            self.drawing.flash_message("T-Spin!", MSG_SPECIAL)
            self.drawing.flash_message(f"+{points}", MSG_BONUS)
            self._update_scoreboard()
            logger.info(f"T-Spin with {piece}")

        lines = self.board.clear_lines()
        bravo = lines > 0 and self.board.is_empty()
        result = self.scoring.award_lines(lines, tspin=tspin, bravo=bravo)
        if lines == 0:
            return result

        if bravo:
            self.drawing.flash_message("Bravo!", MSG_SPECIAL)
            self.drawing.flash_message(f"+{self.config.points_per_bravo * lines}", MSG_BONUS)
        self.drawing.flash_message("1 line" if lines == 1 else f"{lines} lines!", MSG_LINES)
        if result.combo > 1:
            self.drawing.flash_message(f"(x{result.combo} combo)", MSG_COMBO)
        self.drawing.flash_message(f"Lines {self.lines}", MSG_TOTAL)
        self._update_scoreboard()
        if result.level_up:
            self.drawing.flash_message(f"Level {self.level}", MSG_LEVEL_UP)
            logger.info(f"Level up: {self.level}")
        self._draw_well()
        logger.info(
            f"Cleared {lines} line(s): +{result.points}, combo={result.combo}, "
            f"bravo={bravo}, score={self.score}"
        )
        return result

    # Actions

    def move_left(self) -> bool:
        self.rotate_move = False
        return self.move(-1, 0)

    def move_right(self) -> bool:
        self.rotate_move = False
        return self.move(1, 0)

    def rotate_cw(self) -> bool:
        self.rotate_move = True
        return self.rotate(1)

    def rotate_ccw(self) -> bool:
        self.rotate_move = True
        return self.rotate(-1)

    def soft_drop(self) -> bool:
        return self.move(0, 1)

    def hard_drop(self) -> None:
        """Drop the piece to its landing row and cut the gravity wait short."""
        with self._lock:
            self.move(0, landing_row(self.board, self.piece) - self.piece.y)
        self._breaker.open()

    def hold_current(self) -> bool:
        """Swap the active piece with the hold slot.

        With an empty slot the active shape is stored and the next shape
        spawns. Allowed once per drop cycle.

        Returns:
            True if the hold happened
        """
        if not self.config.allow_hold:
            return False
        self.rotate_move = False
        if self.hold_used:
            return False
        self.hold_used = True

        with self._lock:
            self._clear_active()
            if self.hold is None:
                self.hold = self.piece.shape
                self.spawn_next()
            else:
                held = self.hold
                self._clear_piece(self._hold_preview(held))
                self.hold = self.piece.shape
                self.spawn(held)
            self._draw_piece(self._hold_preview(self.hold))
        logger.info(f"Held shape {self.hold}")
        self._breaker.open()
        return True

    def toggle_pause(self) -> None:
        if self.is_paused:
            with self._lock:
                self._draw_well()
                if self.piece is not None:
                    self._draw_active()
            self._pause.open()
            logger.info("Resumed")
        else:
            self._pause.close()
            self.drawing.clear_well()
            self.drawing.print_main_message("Game paused")
            logger.info("Paused")

    def quit_game(self) -> None:
        """End the session: both loops stop at their next check."""
        self.keep_playing = False
        self._pause.open()
        self._breaker.open()

    def perform(self, action: Action) -> None:
        """Run the handler bound to a logical action.

        Piece actions are ignored until the first piece has spawned.
        """
        if self.piece is None and action not in (Action.PAUSE, Action.QUIT):
            return
        handlers = {
            Action.LEFT: self.move_left,
            Action.RIGHT: self.move_right,
            Action.CW: self.rotate_cw,
            Action.CCW: self.rotate_ccw,
            Action.SOFT: self.soft_drop,
            Action.HARD: self.hard_drop,
            Action.HOLD: self.hold_current,
            Action.PAUSE: self.toggle_pause,
            Action.QUIT: self.quit_game,
        }
        handlers[action]()

    def configure_key_bindings(self) -> None:
        """Install extra bindings first so they override the defaults."""
        self.key_bindings = {}
        for key, binding in self.config.extra_key_bindings:
            self.key_bindings[key] = binding
        for key, action in DEFAULT_KEY_BINDINGS:
            self.key_bindings.setdefault(key, action)

    def dispatch(self, key: str) -> bool:
        """Run the binding for a key.

        Returns:
            True if the key was bound
        """
        binding = self.key_bindings.get(key)
        if binding is None:
            return False
        if isinstance(binding, Action):
            self.perform(binding)
        else:
            binding(self)
        return True

    # Loops

    async def _wait_tick(self) -> bool:
        """Wait one gravity tick unless the break gate opens first.

        Returns:
            True if the wait was broken
        """
        broken = await self._breaker.wait_for(self.level_time() / 1000)
        if broken:
            self._breaker.close()
        return broken

    async def _shape_loop(self) -> None:
        while self.keep_playing:
            self.spawn_next()
            while self.keep_playing and self.fits(0, 1) is FitResult.FITS:
                await self._pause.wait()
                self.move(0, 1)
                await self._wait_tick()
            if not self.keep_playing:
                break
            if self.piece.y < 0:
                logger.info("Spawn blocked")
                break
            self.lock_current()
        self._end_game()

    def _end_game(self) -> None:
        self.keep_playing = False
        self.drawing.print_main_message("Game over.")
        logger.info(f"Game over: score={self.score}, lines={self.lines}, level={self.level}")

    async def _input_loop(self) -> None:
        while self.keep_playing:
            key = await self.keys.read_key()
            if key is None or not self.keep_playing:
                continue
            self.dispatch(key)

    async def play(self) -> None:
        """Run the session until the game ends or the player quits."""
        self.drawing.draw_ui()
        self._update_scoreboard()
        self._draw_well()
        self.configure_key_bindings()
        logger.info(f"Starting game on a {self.board.width}x{self.board.height} well")

        gravity = asyncio.create_task(self._shape_loop())
        inputs = asyncio.create_task(self._input_loop())
        try:
            await asyncio.gather(gravity, inputs)
        except Exception as e:
            logger.error(f"Game loop failed: {e}", exc_info=True)
            self.keep_playing = False
            raise
        finally:
            for task in (gravity, inputs):
                if not task.done():
                    task.cancel()
            self.keys.close()
