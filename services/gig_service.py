"""Gig discovery: query planning, price refinement, pagination, enrichment.

This module implements the core logic for:
- translating a `GigQuery` into a store filter, sort spec and fetch window,
- computing a gig's effective minimum price (lowest positive package price,
  else the base price) and filtering on it after the fetch,
- assembling the pagination descriptor,
- the owner-side document helpers used by the gig routes.

The effective minimum price is a minimum over an embedded array, which the
store cannot range-query. When a price bound is requested the planner reads
the first `page * limit * PRICE_OVERFETCH_FACTOR` candidates in the normal
sort order, filters them here and slices the requested page out of the
filtered list, so consecutive pages never overlap. Listings ranked past that
window can be missed, and the
reported `total` is the count before price filtering, so `pages` and
`hasMore` are upper bounds under a price filter.
"""
import asyncio
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from config import PRICE_OVERFETCH_FACTOR
from models import GigCreate, GigQuery, GigUpdate, Pagination
from services.enrichment import attach_order_counts
from services.stores import GigStore, OrderCounter
from utils import get_logger

logger = get_logger(__name__)

LEVEL_GROUPS: Dict[str, List[str]] = {
    "beginner": ["Beginner", "Level 1"],
    "intermediate": ["Intermediate", "Level 2"],
    "expert": ["Expert", "Top Rated"],
}

SORT_OPTIONS: Dict[str, List[Tuple[str, int]]] = {
    "price-asc": [("price", 1)],
    "price-desc": [("price", -1)],
    "rating": [("rating", -1)],
    "newest": [("createdAt", -1)],
    "oldest": [("createdAt", 1)],
}
DEFAULT_SORT = SORT_OPTIONS["newest"]
# Equal sort keys fall back to insertion order (ObjectIds grow with time)
TIE_BREAK = ("_id", 1)


@dataclass(frozen=True)
class GigQueryPlan:
    """Store query plus the post-fetch price window.

    `store_skip` is where the store read starts; `skip` is the page offset
    into the (possibly price-filtered) result list.
    """

    filter: Dict[str, Any]
    sort: List[Tuple[str, int]]
    skip: int
    store_skip: int
    fetch_limit: int
    page_limit: int
    min_price: Optional[int] = None
    max_price: Optional[int] = None

    @property
    def refines_price(self) -> bool:
        return self.min_price is not None or self.max_price is not None


def _sort_spec(sort: str) -> List[Tuple[str, int]]:
    return [*SORT_OPTIONS.get(sort, DEFAULT_SORT), TIE_BREAK]


def plan_gig_query(query: GigQuery, overfetch_factor: int = PRICE_OVERFETCH_FACTOR) -> GigQueryPlan:
    """Build the store query for a filter request.

    Unknown categories and levels are passed through as literal matches, so
    they produce an empty page rather than an error.
    """
    filter_: Dict[str, Any] = {"active": True}
    if query.seller_id:
        filter_["sellerId"] = query.seller_id
    if query.category:
        filter_["category"] = query.category
    if query.delivery_time is not None:
        filter_["deliveryTime"] = {"$lte": query.delivery_time}
    if query.level:
        group = LEVEL_GROUPS.get(query.level.lower())
        filter_["seller.level"] = {"$in": group} if group else query.level
    if query.q:
        filter_["$text"] = {"$search": query.q}

    store_skip, fetch_limit = query.skip, query.limit
    if query.has_price_bound:
        store_skip = 0
        fetch_limit = query.page * query.limit * max(1, overfetch_factor)

    return GigQueryPlan(
        filter=filter_,
        sort=_sort_spec(query.sort),
        skip=query.skip,
        store_skip=store_skip,
        fetch_limit=fetch_limit,
        page_limit=query.limit,
        min_price=query.min_price,
        max_price=query.max_price,
    )


def _price(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def effective_min_price(gig: Dict[str, Any]) -> float:
    """Lowest positive package price, or the base price without one."""
    prices = [_price(p.get("price")) for p in gig.get("packages") or []]
    positive = [p for p in prices if p > 0]
    if positive:
        return min(positive)
    return _price(gig.get("price"))


def refine_by_price(
    gigs: Sequence[Dict[str, Any]],
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Keep gigs whose effective minimum price lies in [min_price, max_price]."""
    kept = []
    for gig in gigs:
        price = effective_min_price(gig)
        if min_price is not None and price < min_price:
            continue
        if max_price is not None and price > max_price:
            continue
        kept.append(gig)
    return kept


def build_pagination(page: int, limit: int, skip: int, returned: int, total: int) -> Pagination:
    """Page descriptor; `total` is whatever the store counted before refinement."""
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit) if limit > 0 else 1,
        has_more=skip + returned < total,
    )


def serialize_gig(gig: Dict[str, Any]) -> Dict[str, Any]:
    """Return a JSON-friendly copy with string `_id` and `id`."""
    doc = dict(gig)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
        doc["id"] = doc["_id"]
    return doc


async def search_gigs(
    store: GigStore, counter: OrderCounter, query: GigQuery
) -> Tuple[List[Dict[str, Any]], Pagination]:
    """Run the discovery pipeline for one filter request.

    Store errors propagate to the caller; order-count failures do not.
    """
    plan = plan_gig_query(query)
    candidates, total = await asyncio.gather(
        store.find(plan.filter, plan.sort, skip=plan.store_skip, limit=plan.fetch_limit),
        store.count(plan.filter),
    )

    if plan.refines_price:
        matched = refine_by_price(candidates, plan.min_price, plan.max_price)
        logger.debug(
            "Price window [%s, %s] kept %d of %d candidates",
            plan.min_price, plan.max_price, len(matched), len(candidates),
        )
        page = matched[plan.skip : plan.skip + plan.page_limit]
    else:
        page = candidates[: plan.page_limit]

    enriched = await attach_order_counts(page, counter)
    pagination = build_pagination(query.page, query.limit, plan.skip, len(enriched), total)
    return [serialize_gig(g) for g in enriched], pagination


# ---------------------- Owner-side helpers ----------------------
def owns_gig(gig: Dict[str, Any], user_id: Optional[str]) -> bool:
    """True when the caller matches the gig's `sellerId` or `seller.id`."""
    if not user_id:
        return False
    seller = gig.get("seller") or {}
    return str(gig.get("sellerId")) == user_id or seller.get("id") == user_id


def new_gig_document(payload: GigCreate, seller_id: str) -> Dict[str, Any]:
    """Build the stored document for a new gig.

    A missing base price or delivery time is taken from the first package.
    """
    first = payload.packages[0]
    now = datetime.now(timezone.utc)
    seller = payload.seller.model_dump(by_alias=True) if payload.seller else {"id": seller_id}
    seller.setdefault("name", "Unknown Seller")
    seller.setdefault("level", "Expert")
    doc = payload.model_dump(by_alias=True, exclude={"seller"})
    doc.update(
        {
            "price": payload.price if payload.price is not None else first.price,
            "deliveryTime": payload.delivery_time if payload.delivery_time is not None else first.delivery_time,
            "sellerId": seller_id,
            "seller": seller,
            "rating": 0,
            "reviewCount": 0,
            "active": True,
            "createdAt": now,
            "updatedAt": now,
        }
    )
    return doc


def gig_update_fields(payload: GigUpdate) -> Dict[str, Any]:
    """Fields to `$set` for a partial update, always bumping `updatedAt`."""
    fields = payload.model_dump(by_alias=True, exclude_unset=True)
    fields["updatedAt"] = datetime.now(timezone.utc)
    return fields
