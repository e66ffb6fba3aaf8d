"""Order-count enrichment for listing pages.

Each gig on a page gets an `orderCount` attached through one count lookup
per gig, all issued concurrently. A failing lookup only affects its own gig:
the count falls back to 0 and the failure is logged.
"""
import asyncio
from typing import Any, Dict, List, Sequence

from services.stores import OrderCounter
from utils import get_logger

logger = get_logger(__name__)


async def _count_orders(counter: OrderCounter, gig: Dict[str, Any]) -> int:
    gig_id = gig.get("_id")
    try:
        count = await counter.count_for_gig(gig_id)
    except Exception as e:  # noqa: BLE001 - one lookup must not fail the page
        logger.warning("Order count lookup failed for gig %s: %s", gig_id, e)
        return 0
    return max(0, int(count or 0))


async def attach_order_counts(
    gigs: Sequence[Dict[str, Any]], counter: OrderCounter
) -> List[Dict[str, Any]]:
    """Return the gigs, in order, each with `orderCount` populated.

    Waits for every lookup to settle; there is no early return.
    """
    counts = await asyncio.gather(*(_count_orders(counter, gig) for gig in gigs))
    return [{**gig, "orderCount": count} for gig, count in zip(gigs, counts)]
