"""Background polling of per-gig rating averages.

Each mounted gig gets its own task that asks the API for the gig's rating
summary every `interval` seconds until the gig is unmounted. A failed poll
is logged and the last good value is kept.
"""
import asyncio
from typing import Callable, Dict, Optional

import httpx

import config
from client.api import GigsApiClient, GigsApiError
from models import RatingSummary
from utils import get_logger

logger = get_logger(__name__)

RatingCallback = Callable[[str, RatingSummary], None]


class RatingPoller:
    """Poll rating summaries for the gigs currently on screen."""

    def __init__(
        self,
        api: GigsApiClient,
        interval: float = config.RATING_POLL_INTERVAL,
        on_update: Optional[RatingCallback] = None,
    ) -> None:
        self.api = api
        self.interval = interval
        self.on_update = on_update
        self.values: Dict[str, RatingSummary] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def mounted(self) -> set:
        return set(self._tasks)

    def mount(self, gig_id: str) -> None:
        if gig_id in self._tasks:
            return
        self._tasks[gig_id] = asyncio.ensure_future(self._poll(gig_id))

    def unmount(self, gig_id: str) -> None:
        task = self._tasks.pop(gig_id, None)
        if task is not None:
            task.cancel()

    def average(self, gig_id: str) -> Optional[float]:
        """Last known average rating, or None before the first good poll."""
        summary = self.values.get(gig_id)
        return summary.average_rating if summary else None

    async def _poll(self, gig_id: str) -> None:
        while True:
            try:
                summary = await self.api.gig_rating(gig_id)
            except (httpx.HTTPError, GigsApiError) as e:
                logger.warning("Rating poll failed for gig %s: %s", gig_id, e)
            else:
                self.values[gig_id] = summary
                if self.on_update is not None:
                    try:
                        self.on_update(gig_id, summary)
                    except Exception:
                        logger.exception("Rating update hook failed for gig %s", gig_id)
            await asyncio.sleep(self.interval)

    async def close(self) -> None:
        """Cancel every polling task and wait for them to stop."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
