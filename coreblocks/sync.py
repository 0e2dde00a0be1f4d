"""Awaitable gate shared by the pause and break signals."""

import asyncio


class Gate:
    """Resettable gate that suspends waiters while closed.

    Opening the gate releases every pending waiter; closing it makes later
    waiters block again. Used open-by-default for pause (closing pauses
    gravity) and closed-by-default as a one-shot break signal that the
    waiter closes again after it fires.
    """

    def __init__(self, is_open: bool = True):
        self._event = asyncio.Event()
        if is_open:
            self._event.set()

    @property
    def is_open(self) -> bool:
        return self._event.is_set()

    def open(self) -> None:
        self._event.set()

    def close(self) -> None:
        self._event.clear()

    async def wait(self) -> None:
        """Wait until the gate is open. Returns immediately if it already is."""
        await self._event.wait()

    async def wait_for(self, timeout: float) -> bool:
        """Race the gate against a timeout.

        Args:
            timeout: Seconds to wait

        Returns:
            True if the gate opened before the timeout, False otherwise
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def __repr__(self) -> str:
        return f"Gate({'open' if self.is_open else 'closed'})"
