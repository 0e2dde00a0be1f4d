"""Tests for the game session."""

import asyncio
import random
import threading

import pytest

from coreblocks.board import Board, FitResult
from coreblocks.config import CLASSIC, HEAD_START, STANDARD
from coreblocks.drawing import SHADOW_BLOCK, GameDrawing
from coreblocks.field import GameField
from coreblocks.keys import Action, QueueKeySource
from coreblocks.piece import Piece
from coreblocks.rng import bag_selector
from coreblocks.shapes import STANDARD_SHAPES

O, I, J, L, Z, S, T = range(7)


class RecordingDrawing(GameDrawing):
    """Keeps the last drawn state of every cell and every message."""

    def __init__(self):
        self.blocks = {}
        self.messages = {}
        self.main_messages = []
        self.ui_drawn = False
        self.well_clears = 0

    def clear_block(self, x, y):
        self.blocks.pop((x, y), None)

    def draw_block(self, block, x, y):
        self.blocks[(x, y)] = block

    def draw_ui(self):
        self.ui_drawn = True

    def print_main_message(self, message):
        self.main_messages.append(message)

    def put_message(self, message, line):
        self.messages[line] = message

    def clear_well(self):
        self.well_clears += 1


def fixed_selector(*shapes):
    """Select the given shapes in order, repeating the last one."""
    queue = list(shapes)

    def select(previous, rng):
        return queue.pop(0) if len(queue) > 1 else queue[0]

    return select


def make_field(config=STANDARD, *shapes, **kwargs):
    config = config.replace(next_block_selector=fixed_selector(*(shapes or (O,))))
    return GameField(config, **kwargs)


def fill_row(board, y, skip=()):
    for x in range(board.width):
        if x not in skip:
            board.set(x, y, 1)


def drop(field):
    while field.fits(0, 1) is FitResult.FITS:
        field.move(0, 1)


def test_spawn_position():
    """Test pieces spawn centred, above the well, unrotated."""
    field = make_field(STANDARD, T)
    piece = field.spawn_next()
    assert (piece.shape, piece.x, piece.y, piece.rot) == (T, 4, -1, 0)

    field = make_field(STANDARD.replace(well_width=20), T)
    assert field.spawn_next().x == 9


def test_square_falls_to_the_floor():
    """Test the square descends 23 rows on a 10x24 well and locks in the bottom two rows."""
    field = make_field(STANDARD, O)
    field.spawn_next()

    steps = 0
    while field.fits(0, 1) is FitResult.FITS:
        assert field.move(0, 1)
        steps += 1

    assert steps == 23
    assert field.fits(0, 1) is FitResult.BLOCKED
    assert field.piece.y == 22

    field.lock_current()
    filled = {(x, y) for x in range(10) for y in range(24) if field.board.get(x, y) is not None}
    assert filled == {(4, 22), (5, 22), (4, 23), (5, 23)}


def test_moves_against_walls_are_ignored():
    """Test illegal moves leave the piece where it is."""
    field = make_field(STANDARD, O)
    field.spawn_next()
    field.move(0, 5)

    while field.move_left():
        pass
    assert field.piece.x == 0
    assert field.fits(-1, 0) is FitResult.OUT_OF_BOUNDS
    assert not field.move_left()
    assert field.piece.x == 0


def test_single_line_clear():
    """Test filling the gap in the bottom row clears one line."""
    field = make_field(STANDARD, O)
    fill_row(field.board, 23, skip={4, 5})
    field.spawn_next()
    drop(field)

    result = field.lock_current()

    assert result.lines == 1
    assert field.lines == 1
    assert field.score == STANDARD.points_per_line * 1 * 1
    assert field.board.get(4, 23) == O and field.board.get(5, 23) == O
    assert field.board.get(0, 23) is None


def test_combo_across_locks():
    """Test consecutive clearing locks raise the combo and a dry lock resets it."""
    field = make_field(STANDARD, O)

    combos = []
    for _ in range(3):
        field.board = Board(10, 24)
        fill_row(field.board, 23, skip={4, 5})
        field.spawn_next()
        drop(field)
        combos.append(field.lock_current().combo)

    assert combos == [1, 2, 3]
    assert field.score == 100 + 200 + 300

    field.board = Board(10, 24)
    field.spawn_next()
    drop(field)
    field.lock_current()
    assert field.combo == 0
    assert field.score == 600


def test_bravo():
    """Test emptying the well pays the full-clear bonus once per line."""
    drawing = RecordingDrawing()
    field = make_field(STANDARD, O, drawing=drawing)
    fill_row(field.board, 22, skip={4, 5})
    fill_row(field.board, 23, skip={4, 5})
    field.spawn_next()
    drop(field)

    result = field.lock_current()

    assert result.bravo
    assert field.board.is_empty()
    assert field.score == 2 * 100 * 1 + 2 * 800
    assert drawing.messages[6] == "Bravo!"
    assert drawing.messages[8] == "2 lines!"


def test_tspin_requires_rotation():
    """Test the T-Spin bonus needs the corners and a rotation as the last action."""
    for rotated, expected in ((True, 400), (False, 0)):
        field = make_field(STANDARD, T)
        field.board.set(3, 21, 1)
        field.board.set(3, 23, 1)
        field.board.set(5, 23, 1)
        field.spawn_next()
        field.piece = Piece(STANDARD_SHAPES, T, 3, 21)
        field.rotate_move = rotated

        result = field.lock_current()

        assert result.lines == 0
        assert result.tspin is rotated
        assert field.score == expected


def test_rotation_sets_spin_flag_and_moves_clear_it():
    """Test rotating marks the last action; sideways moves and hold clear it."""
    field = make_field(STANDARD, T)
    field.spawn_next()
    field.move(0, 5)

    assert field.rotate_cw()
    assert field.rotate_move and field.piece.rot == 1
    assert field.rotate_ccw() and field.piece.rot == 0

    field.move_right()
    assert not field.rotate_move

    field.rotate_cw()
    field.soft_drop()
    assert field.rotate_move, "Dropping does not count as a sideways move"


def test_hold_once_per_drop():
    """Test hold stores, refuses a second use, then swaps after the next lock."""
    field = make_field(STANDARD, O, I, J, L)
    field.spawn_next()
    assert field.piece.shape == O and field.next_shape == I

    assert field.hold_current()
    assert field.hold == O
    assert (field.piece.shape, field.piece.x, field.piece.y, field.piece.rot) == (I, 4, -1, 0)
    assert field.next_shape == J

    assert not field.hold_current(), "Second hold in the same drop should do nothing"
    assert field.hold == O and field.piece.shape == I

    for _ in range(5):
        field.move(0, 1)
    field.lock_current()
    assert not field.hold_used

    field.spawn_next()
    assert field.piece.shape == J
    field.move(0, 2)
    assert field.rotate_cw() and field.piece.rot == 1

    assert field.hold_current()
    assert field.hold == J
    assert (field.piece.shape, field.piece.x, field.piece.y, field.piece.rot) == (O, 4, -1, 0)


def test_hold_disabled():
    """Test hold does nothing when the mode does not allow it."""
    field = make_field(CLASSIC, O, I)
    field.spawn_next()
    assert not field.hold_current()
    assert field.hold is None and field.piece.shape == O


def test_hard_drop_lands_piece():
    """Test hard drop moves the piece to its landing row."""
    drawing = RecordingDrawing()
    field = make_field(STANDARD, O, drawing=drawing)
    field.spawn_next()
    field.move(0, 1)
    assert drawing.blocks[(4, 22)] == SHADOW_BLOCK

    field.hard_drop()

    assert field.piece.y == 22
    assert drawing.blocks[(4, 22)] == O
    assert field.fits(0, 1) is FitResult.BLOCKED


def test_key_bindings():
    """Test defaults, overrides and custom callables."""
    calls = []
    config = STANDARD.replace(
        extra_key_bindings=[("a", Action.RIGHT), ("z", lambda field: calls.append(field))]
    )
    field = make_field(config, O)
    field.configure_key_bindings()

    assert field.key_bindings["a"] is Action.RIGHT, "Extra bindings override defaults"
    assert field.key_bindings["left"] is Action.LEFT
    assert field.key_bindings["4"] is Action.LEFT
    assert field.key_bindings["space"] is Action.HARD

    field.spawn_next()
    field.move(0, 3)
    x = field.piece.x
    assert field.dispatch("a")
    assert field.piece.x == x + 1
    assert field.dispatch("z")
    assert calls == [field]
    assert not field.dispatch("F13")


def test_default_state_must_match_well():
    """Test a pre-seeded well of the wrong size is rejected."""
    with pytest.raises(ValueError):
        GameField(HEAD_START.replace(well_width=12))

    field = GameField(HEAD_START)
    assert field.board.get(0, 1) is not None


def test_level_timer_follows_level():
    """Test the gravity timer follows the session level."""
    field = make_field(STANDARD, O)
    assert field.level_time() == 2175
    field.level = 3
    assert field.level_time() == 2025




def test_pause_before_first_spawn():
    """Test pause and resume work before any piece is in play."""
    drawing = RecordingDrawing()
    field = make_field(STANDARD, O, drawing=drawing)
    field.configure_key_bindings()

    assert field.dispatch("p")
    assert field.is_paused
    assert field.dispatch("p")
    assert not field.is_paused
    assert drawing.main_messages == ["Game paused"]

    assert field.dispatch("left"), "Bound key is consumed"
    assert field.piece is None


def test_moves_from_worker_threads():
    """Test moves issued from other threads leave the piece in a consistent pose."""
    drawing = RecordingDrawing()
    field = make_field(STANDARD, O, drawing=drawing)
    field.spawn_next()
    field.move(0, 5)

    def wiggle():
        for _ in range(200):
            field.move(-1, 0)
            field.move(1, 0)

    threads = [threading.Thread(target=wiggle) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert field.piece.x == 4
    cells = set(field.piece.get_cells())
    drawn = {pos for pos, block in drawing.blocks.items() if block == O}
    assert drawn == cells, "Only the current pose should be drawn"


def test_bag_selector_mode():
    """Test a mode built on the bag selector deals each shape once per round."""
    config = STANDARD.replace(next_block_selector=bag_selector(len(STANDARD_SHAPES)))
    field = GameField(config, rng=random.Random(3))

    dealt = []
    for _ in range(14):
        dealt.append(field.spawn_next().shape)

    assert sorted(dealt[:7]) == list(range(7))
    assert sorted(dealt[7:]) == list(range(7))


FAST = STANDARD.replace(max_level=1, level_timer_step=1)


@pytest.mark.asyncio
async def test_play_until_spawn_is_blocked():
    """Test the session ends once a new piece cannot enter the well."""
    drawing = RecordingDrawing()
    field = make_field(FAST, O, drawing=drawing)

    await asyncio.wait_for(field.play(), timeout=10)

    assert not field.keep_playing
    assert drawing.ui_drawn
    assert drawing.main_messages[-1] == "Game over."
    assert all(field.board.get(x, y) == O for x in (4, 5) for y in range(24))
    assert field.lines == 0


@pytest.mark.asyncio
async def test_quit_key_ends_game():
    """Test quitting ends the session without waiting out the gravity timer."""
    keys = QueueKeySource(poll_interval=0.01)
    drawing = RecordingDrawing()
    field = make_field(STANDARD, O, drawing=drawing, keys=keys)

    keys.push("q")
    await asyncio.wait_for(field.play(), timeout=1.5)

    assert not field.keep_playing
    assert drawing.main_messages == ["Game over."]


@pytest.mark.asyncio
async def test_hard_drop_breaks_gravity_wait():
    """Test a hard drop locks the piece without waiting for the next tick."""
    keys = QueueKeySource(poll_interval=0.01)
    field = make_field(STANDARD, O, keys=keys)

    task = asyncio.create_task(field.play())
    keys.push("space")
    await asyncio.sleep(0.3)

    assert field.board.get(4, 23) == O, "Piece should have locked well before the 2s tick"
    assert field.piece.y == 0

    keys.push("q")
    await asyncio.wait_for(task, timeout=1.5)


@pytest.mark.asyncio
async def test_pause_stops_gravity():
    """Test gravity halts while paused and resumes afterwards."""
    keys = QueueKeySource(poll_interval=0.01)
    drawing = RecordingDrawing()
    field = make_field(STANDARD.replace(max_level=1, level_timer_step=20), O, drawing=drawing, keys=keys)

    task = asyncio.create_task(field.play())
    keys.push("p")
    await asyncio.sleep(0.1)
    assert field.is_paused
    assert drawing.main_messages[-1] == "Game paused"
    assert drawing.well_clears == 1

    y = field.piece.y
    await asyncio.sleep(0.2)
    assert field.piece.y == y, "Piece should not fall while paused"

    keys.push("p")
    await asyncio.sleep(0.2)
    assert not field.is_paused
    assert field.piece.y > y or field.board.get(4, 23) == O

    keys.push("q")
    await asyncio.wait_for(task, timeout=1.5)


@pytest.mark.asyncio
async def test_quit_while_paused():
    """Test quit stays responsive while the game is paused."""
    keys = QueueKeySource(poll_interval=0.01)
    field = make_field(STANDARD, O, keys=keys)

    task = asyncio.create_task(field.play())
    keys.push("p")
    await asyncio.sleep(0.05)
    keys.push("q")

    await asyncio.wait_for(task, timeout=3)
    assert not field.keep_playing
