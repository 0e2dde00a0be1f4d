"""Logical actions, key bindings and key sources."""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Tuple, Union

if TYPE_CHECKING:
    from coreblocks.field import GameField


class Action(Enum):
    """Player actions a key can be bound to."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    CW = "CW"        # Clockwise rotation
    CCW = "CCW"      # Counter-clockwise rotation
    SOFT = "SOFT"    # Soft drop (move down)
    HARD = "HARD"    # Hard drop
    HOLD = "HOLD"    # Hold current piece
    PAUSE = "PAUSE"  # Toggle pause
    QUIT = "QUIT"


# A binding is a logical action or any callable that takes the field
Binding = Union[Action, Callable[["GameField"], None]]

# Key names are those produced by the key sources: single characters for
# printable keys (digits double as the numeric keypad) and lowercase names
# for the rest.
DEFAULT_KEY_BINDINGS: Tuple[Tuple[str, Action], ...] = (
    ("left", Action.LEFT),
    ("a", Action.LEFT),
    ("4", Action.LEFT),
    ("right", Action.RIGHT),
    ("d", Action.RIGHT),
    ("6", Action.RIGHT),
    ("up", Action.CW),
    ("w", Action.CW),
    ("9", Action.CW),
    ("8", Action.CW),
    ("7", Action.CCW),
    ("x", Action.CCW),
    ("down", Action.SOFT),
    ("s", Action.SOFT),
    ("5", Action.SOFT),
    ("space", Action.HARD),
    ("2", Action.HARD),
    ("c", Action.HOLD),
    ("0", Action.HOLD),
    ("pause", Action.PAUSE),
    ("p", Action.PAUSE),
    ("q", Action.QUIT),
    ("escape", Action.QUIT),
)


class KeySource(ABC):
    """Source of key presses for the input loop."""

    @abstractmethod
    async def read_key(self) -> Optional[str]:
        """Wait briefly for the next key press.

        Implementations must return None after a short idle period so the
        input loop can notice the end of the game.

        Returns:
            Key name, or None if no key arrived
        """
        pass

    def close(self) -> None:
        """Release any resources held by the source."""
        pass


class QueueKeySource(KeySource):
    """Key source fed programmatically, for scripted play and tests."""

    def __init__(self, poll_interval: float = 0.05):
        """Initialize an empty source.

        Args:
            poll_interval: Seconds read_key waits before returning None
        """
        self.poll_interval = poll_interval
        self._queue: "asyncio.Queue[str]" = asyncio.Queue()

    def push(self, *keys: str) -> None:
        for key in keys:
            self._queue.put_nowait(key)

    async def read_key(self) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._queue.get(), self.poll_interval)
        except asyncio.TimeoutError:
            return None
