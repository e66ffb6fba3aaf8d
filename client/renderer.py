"""Frame-budgeted, progressive reveal of a gig result list.

`ProgressiveRenderer.show()` hands the display layer the first batch right
away and then one more batch per frame tick until the whole list is
visible. Each step passes a cumulative prefix (`items[:k]`), never a delta.
A new list arriving mid-reveal supersedes the old one: the pending tick is
cancelled and batching restarts from the new list's first batch.
"""
import asyncio
import enum
from typing import Any, Callable, List, Optional, Sequence

import config
from utils import get_logger

logger = get_logger(__name__)

RevealCallback = Callable[[List[Any]], None]


class RenderPhase(enum.Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    COMPLETE = "complete"


class ProgressiveRenderer:
    """Reveal a list in fixed-size batches, one batch per frame.

    Args:
        on_reveal: Called with the visible prefix after every step.
        batch_size: Items added per step.
        frame_interval: Delay between steps, in seconds.
        loop: Event loop to schedule on; defaults to the running loop.
    """

    def __init__(
        self,
        on_reveal: RevealCallback,
        batch_size: int = config.RENDER_BATCH_SIZE,
        frame_interval: float = config.RENDER_FRAME_INTERVAL,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.on_reveal = on_reveal
        self.batch_size = batch_size
        self.frame_interval = frame_interval
        self._loop = loop
        self._items: List[Any] = []
        self._cursor = 0
        self._handle: Optional[asyncio.TimerHandle] = None
        self._done = asyncio.Event()
        self._done.set()
        self.phase = RenderPhase.IDLE

    @property
    def visible(self) -> List[Any]:
        return self._items[: self._cursor]

    def show(self, items: Sequence[Any]) -> None:
        """Start revealing `items`, superseding any reveal in progress."""
        if self.phase is RenderPhase.REVEALING:
            logger.debug("Reveal superseded at %d/%d", self._cursor, len(self._items))
        self._cancel_pending()
        self._items = list(items)
        self._cursor = 0
        self._done.clear()
        self.phase = RenderPhase.REVEALING
        self._step()

    def cancel(self) -> None:
        """Drop the pending step; what is already visible stays visible."""
        self._cancel_pending()
        if self.phase is RenderPhase.REVEALING:
            self.phase = RenderPhase.IDLE
        self._done.set()

    async def wait_complete(self) -> None:
        """Wait until the current reveal finishes or is cancelled."""
        await self._done.wait()

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _step(self) -> None:
        self._handle = None
        self._cursor = min(self._cursor + self.batch_size, len(self._items))
        self.on_reveal(self.visible)
        if self._cursor >= len(self._items):
            self.phase = RenderPhase.COMPLETE
            self._done.set()
            return
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.frame_interval, self._step)
