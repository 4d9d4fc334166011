from __future__ import annotations

import asyncio


class CancellationToken:
    """Shared stop signal for every poller spawned for one epoch."""

    def __init__(self, epoch: int) -> None:
        self.epoch = epoch
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait for the delay; returns False if cancelled before it elapsed."""
        if self.cancelled:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return True
        return False
