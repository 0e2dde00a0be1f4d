#!/usr/bin/env python3
"""Terminal entry point: title screen, mode menu and game sessions.

Usage:
    python -m coreblocks            - choose a mode from the menu
    python -m coreblocks standard   - play one game of the named mode

Environment:
    COREBLOCKS_LOG        log file (default coreblocks.log)
    COREBLOCKS_LOG_LEVEL  logging level name (default WARNING)
"""

import asyncio
import curses
import logging
import os
import sys
from typing import Optional

from coreblocks.config import GAME_MODES, GameConfig
from coreblocks.field import GameField
from coreblocks.terminal import CursesDrawing, CursesKeySource

logger = logging.getLogger(__name__)

END_DELAY_SECONDS = 5

TITLE = r"""
  ___              ___ _         _
 / __|___ _ _ ___| _ ) |___  __| |__ ___
| (__/ _ \ '_/ -_) _ \ / _ \/ _| / /(_-<
 \___\___/_| \___|___/_\___/\__|_\_\/__/
"""


def configure_logging() -> None:
    # curses owns the terminal, so records go to a file
    level_name = os.getenv("COREBLOCKS_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        filename=os.getenv("COREBLOCKS_LOG", "coreblocks.log"),
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def select_game() -> Optional[GameConfig]:
    """Show the title and ask for a game mode.

    Returns:
        Chosen configuration, or None to exit
    """
    print(TITLE)
    names = list(GAME_MODES)
    print("Select a game mode:")
    for i, name in enumerate(names, start=1):
        print(f"  {i}: {name}")
    print("  0: Exit")
    prompt = "Enter the number of the game mode: "
    while True:
        try:
            answer = input(prompt)
        except EOFError:
            return None
        if answer.strip().isdigit():
            selected = int(answer)
            if selected == 0:
                return None
            if selected <= len(names):
                return GAME_MODES[names[selected - 1]]
        prompt = "Invalid input. Try again: "


async def run_session(stdscr, config: GameConfig) -> GameField:
    field = GameField(config, CursesDrawing(stdscr, config), CursesKeySource(stdscr))
    await field.play()
    stdscr.refresh()
    await asyncio.sleep(END_DELAY_SECONDS)
    return field


def play(config: GameConfig) -> GameField:
    """Play one game in a curses screen."""

    def main(stdscr):
        curses.curs_set(0)
        stdscr.clear()
        return asyncio.run(run_session(stdscr, config))

    field = curses.wrapper(main)
    print(f"Score: {field.score}  Lines: {field.lines}  Level: {field.level}")
    return field


def main() -> None:
    configure_logging()
    # Make Escape respond without curses' default one second delay
    os.environ.setdefault("ESCDELAY", "25")

    if len(sys.argv) > 1:
        mode = sys.argv[1].lower()
        if mode not in GAME_MODES:
            print(f"Unknown mode: {mode}. Choose from: {', '.join(GAME_MODES)}")
            sys.exit(2)
        play(GAME_MODES[mode])
        return

    while True:
        config = select_game()
        if config is None:
            break
        logger.info("Starting a new game from the menu")
        play(config)


if __name__ == "__main__":
    main()
