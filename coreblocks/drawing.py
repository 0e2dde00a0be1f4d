"""Drawing collaborator interface.

The game field calls these as side effects of state changes and never reads
anything back. Coordinates are well cells: (0, 0) is the top-left cell of the
well; previews use coordinates outside the well.
"""

import asyncio
from abc import ABC, abstractmethod

SHADOW_BLOCK = -1


class GameDrawing(ABC):
    """Abstract base class for game renderers."""

    @abstractmethod
    def clear_block(self, x: int, y: int) -> None:
        """Erase the block at (x, y)."""
        pass

    @abstractmethod
    def draw_block(self, block: int, x: int, y: int) -> None:
        """Draw a block at (x, y).

        Args:
            block: Shape id or board tag used as colour; SHADOW_BLOCK for the
                landing preview
            x: Column
            y: Row
        """
        pass

    @abstractmethod
    def draw_ui(self) -> None:
        """Draw the static frame and labels."""
        pass

    @abstractmethod
    def print_main_message(self, message: str) -> None:
        """Show a multi-line banner centred over the well."""
        pass

    @abstractmethod
    def put_message(self, message: str, line: int) -> None:
        """Write a message on the given line beside the well."""
        pass

    @abstractmethod
    def clear_well(self) -> None:
        """Blank the whole well."""
        pass

    def flash_message(self, message: str, line: int, seconds: float = 3.0) -> None:
        """Write a message that blanks itself after ``seconds``.

        The blanking is scheduled on the running event loop; without one the
        message simply stays.
        """
        self.put_message(message, line)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_later(seconds, self.put_message, " " * len(message), line)


class NullDrawing(GameDrawing):
    """Renderer that draws nothing, for headless sessions."""

    def clear_block(self, x: int, y: int) -> None:
        pass

    def draw_block(self, block: int, x: int, y: int) -> None:
        pass

    def draw_ui(self) -> None:
        pass

    def print_main_message(self, message: str) -> None:
        pass

    def put_message(self, message: str, line: int) -> None:
        pass

    def clear_well(self) -> None:
        pass
