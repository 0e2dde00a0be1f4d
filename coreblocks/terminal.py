"""curses renderer and key source."""

import asyncio
import curses
import time
from typing import Optional

from coreblocks.config import GameConfig
from coreblocks.drawing import SHADOW_BLOCK, GameDrawing
from coreblocks.keys import KeySource

WELL_X_OFFSET = 14
WELL_Y_OFFSET = 1

BLOCK_COLORS = (
    curses.COLOR_YELLOW,
    curses.COLOR_CYAN,
    curses.COLOR_BLUE,
    curses.COLOR_WHITE,
    curses.COLOR_RED,
    curses.COLOR_GREEN,
    curses.COLOR_MAGENTA,
)
SHADOW_PAIR = len(BLOCK_COLORS) + 1

SPECIAL_KEYS = {
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    27: "escape",
    ord(" "): "space",
}


class CursesDrawing(GameDrawing):
    """Draws the well with two terminal columns per cell."""

    def __init__(self, stdscr, config: GameConfig):
        self.stdscr = stdscr
        self.config = config
        self._colors = curses.has_colors()
        if self._colors:
            curses.start_color()
            curses.use_default_colors()
            for i, color in enumerate(BLOCK_COLORS, start=1):
                curses.init_pair(i, curses.COLOR_BLACK, color)
            curses.init_pair(SHADOW_PAIR, curses.COLOR_WHITE, -1)

    def _write(self, row: int, col: int, text: str, attr: int = 0) -> None:
        try:
            self.stdscr.addstr(row, col, text, attr)
        except curses.error:
            pass  # Off-screen on a small terminal

    def _cell(self, x: int, y: int):
        return WELL_Y_OFFSET + y + 1, WELL_X_OFFSET + x * 2 + 1

    def clear_block(self, x: int, y: int) -> None:
        if y < 0:
            return
        row, col = self._cell(x, y)
        self._write(row, col, "  ")

    def draw_block(self, block: int, x: int, y: int) -> None:
        if y < 0:
            return
        row, col = self._cell(x, y)
        if not self._colors:
            self._write(row, col, ".." if block == SHADOW_BLOCK else "[]")
        elif block == SHADOW_BLOCK:
            self._write(row, col, "[]", curses.color_pair(SHADOW_PAIR) | curses.A_DIM)
        else:
            self._write(row, col, "[]", curses.color_pair(block % len(BLOCK_COLORS) + 1))

    def draw_ui(self) -> None:
        width = self.config.well_width
        height = self.config.well_height
        for j in range(1, height + 1):
            self._write(WELL_Y_OFFSET + j, WELL_X_OFFSET, "|")
            self._write(WELL_Y_OFFSET + j, WELL_X_OFFSET + width * 2 + 1, "|")
        self._write(WELL_Y_OFFSET + height + 1, WELL_X_OFFSET, "+" + "-" * (width * 2) + "+")
        self._write(WELL_Y_OFFSET, WELL_X_OFFSET + width * 2 + 4, "Next:")
        if self.config.allow_hold:
            self._write(WELL_Y_OFFSET, WELL_X_OFFSET - 10, "Hold:")

    def print_main_message(self, message: str) -> None:
        lines = message.split("\n")
        widest = max(len(line) for line in lines)
        left = WELL_X_OFFSET + self.config.well_width - widest // 2
        top = WELL_Y_OFFSET + self.config.well_height // 2 - len(lines) // 2
        for i, line in enumerate(lines):
            self._write(top + i, left + (widest - len(line)) // 2, line)
        self.stdscr.refresh()

    def put_message(self, message: str, line: int) -> None:
        self._write(WELL_Y_OFFSET + line, 0, message)

    def clear_well(self) -> None:
        for x in range(self.config.well_width):
            for y in range(self.config.well_height):
                self.clear_block(x, y)


class CursesKeySource(KeySource):
    """Polls curses for keys without blocking the event loop.

    Polling ``getch`` also refreshes the screen, which flushes whatever the
    renderer wrote since the last poll.
    """

    def __init__(self, stdscr, poll_interval: float = 0.02, idle_timeout: float = 0.1):
        """Initialize the source.

        Args:
            stdscr: curses window to read from
            poll_interval: Seconds between polls
            idle_timeout: Seconds without a key before read_key returns None
        """
        self.stdscr = stdscr
        self.poll_interval = poll_interval
        self.idle_timeout = idle_timeout
        stdscr.nodelay(True)
        stdscr.keypad(True)

    async def read_key(self) -> Optional[str]:
        deadline = time.monotonic() + self.idle_timeout
        while True:
            ch = self.stdscr.getch()
            if ch != -1:
                return key_name(ch)
            if time.monotonic() >= deadline:
                return None
            await asyncio.sleep(self.poll_interval)

    def close(self) -> None:
        self.stdscr.nodelay(False)


def key_name(ch: int) -> str:
    """Translate a curses key code into a binding key name."""
    if ch in SPECIAL_KEYS:
        return SPECIAL_KEYS[ch]
    if 0 <= ch < 256:
        return chr(ch).lower()
    return curses.keyname(ch).decode("ascii", "replace").lower()
