"""Listing view: coordinator, progressive renderer and rating poller together.

The view owns its `ListingViewState`. Every reveal step updates the visible
gig list and keeps one rating poller mounted per visible gig.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional

import config
from client.api import GigsApiClient
from client.coordinator import FetchCoordinator, ListingViewState
from client.poller import RatingPoller
from client.renderer import ProgressiveRenderer
from models import RatingSummary


class GigListingView:
    """Headless listing view driven by navigation, filter and visibility events.

    Args:
        api: Client for the gig API.
        on_render: Optional hook called with the visible gigs after each reveal step.
        on_rating: Optional hook called when a gig's rating summary changes.
    """

    def __init__(
        self,
        api: GigsApiClient,
        on_render: Optional[Callable[[List[Dict[str, Any]]], None]] = None,
        on_rating: Optional[Callable[[str, RatingSummary], None]] = None,
        batch_size: int = config.RENDER_BATCH_SIZE,
        frame_interval: float = config.RENDER_FRAME_INTERVAL,
        poll_interval: float = config.RATING_POLL_INTERVAL,
    ) -> None:
        self.state = ListingViewState()
        self.visible: List[Dict[str, Any]] = []
        self._on_render = on_render
        self.renderer = ProgressiveRenderer(self._render, batch_size, frame_interval)
        self.poller = RatingPoller(api, poll_interval, on_update=on_rating)
        self.coordinator = FetchCoordinator(api, self.renderer, self.state)

    def _render(self, visible: List[Dict[str, Any]]) -> None:
        self.visible = visible
        ids = {str(g.get("id") or g.get("_id")) for g in visible}
        for gig_id in self.poller.mounted - ids:
            self.poller.unmount(gig_id)
        for gig_id in ids:
            self.poller.mount(gig_id)
        if self._on_render is not None:
            self._on_render(visible)

    def average_rating(self, gig_id: str) -> Optional[float]:
        return self.poller.average(gig_id)

    def open(self):
        return self.coordinator.on_navigate()

    def set_filters(self, filters: Mapping[str, Any]):
        return self.coordinator.on_filters_changed(filters)

    def set_visible(self, visible: bool):
        return self.coordinator.on_visibility_changed(visible)

    async def close(self) -> None:
        """Tear down timers and tasks so nothing updates a closed view."""
        await self.coordinator.close()
        await self.poller.close()
