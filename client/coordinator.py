"""Fetch coordination for the gig listing view.

One fetch cycle at a time: a request made while a cycle is in flight is
dropped, not queued. The first cycle is the initial load; its failure is
shown to the user and clears the list. Later cycles are background
refreshes; their failures are logged and the last good list stays up.
"""
import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from client.api import GigsApiClient, GigsApiError
from client.renderer import ProgressiveRenderer
from models import Pagination
from utils import get_logger

logger = get_logger(__name__)


class FetchPhase(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    REFRESHING = "refreshing"


@dataclass
class ListingViewState:
    """State owned by one listing view."""

    phase: FetchPhase = FetchPhase.IDLE
    initial_load_done: bool = False
    filters: Dict[str, Any] = field(default_factory=dict)
    gigs: List[Dict[str, Any]] = field(default_factory=list)
    pagination: Optional[Pagination] = None
    error: Optional[str] = None

    @property
    def in_flight(self) -> bool:
        return self.phase is not FetchPhase.IDLE


class FetchCoordinator:
    """Serialize fetches for a listing view and feed results to the renderer."""

    def __init__(
        self,
        api: GigsApiClient,
        renderer: ProgressiveRenderer,
        state: Optional[ListingViewState] = None,
    ) -> None:
        self.api = api
        self.renderer = renderer
        self.state = state or ListingViewState()
        self._task: Optional[asyncio.Task] = None

    def request_fetch(self) -> Optional[asyncio.Task]:
        """Start a fetch cycle unless one is already running.

        Returns the new cycle's task, or None when the request was dropped.
        """
        if self.state.in_flight:
            logger.debug("Fetch dropped: a fetch is already in flight")
            return None
        self.state.phase = (
            FetchPhase.REFRESHING if self.state.initial_load_done else FetchPhase.LOADING
        )
        self._task = asyncio.ensure_future(self._run(dict(self.state.filters)))
        return self._task

    async def fetch(self) -> bool:
        """Request a fetch and wait for it; False when the request was dropped."""
        task = self.request_fetch()
        if task is None:
            return False
        await task
        return True

    # Triggers
    def on_navigate(self) -> Optional[asyncio.Task]:
        return self.request_fetch()

    def on_filters_changed(self, filters: Mapping[str, Any]) -> Optional[asyncio.Task]:
        self.state.filters = dict(filters)
        return self.request_fetch()

    def on_visibility_changed(self, visible: bool) -> Optional[asyncio.Task]:
        """Refresh when the view comes back, but never ahead of the first load."""
        if not visible or not self.state.initial_load_done or self.state.in_flight:
            return None
        return self.request_fetch()

    async def _run(self, filters: Dict[str, Any]) -> None:
        first_load = not self.state.initial_load_done
        try:
            page = await self.api.list_gigs(filters)
        except (httpx.HTTPError, GigsApiError) as e:
            if first_load:
                logger.error("Initial gig load failed: %s", e)
                self.state.error = "Failed to load gigs"
                self.state.gigs = []
                self.state.pagination = None
                self.renderer.show([])
            else:
                logger.warning("Gig refresh failed, keeping previous results: %s", e)
        else:
            self.state.error = None
            self.state.gigs = page.gigs
            self.state.pagination = page.pagination
            self.renderer.show(page.gigs)
        finally:
            self.state.initial_load_done = True
            self.state.phase = FetchPhase.IDLE

    async def close(self) -> None:
        """Cancel an in-flight fetch and stop revealing."""
        self.renderer.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
