"""Gig routes: discovery listing, owner CRUD, and rating summaries.

The listing endpoint reads raw query parameters and lets `GigQuery` coerce
them, so malformed filters never produce a 4xx. Store failures are logged
and returned as a `success: false` envelope with status 500.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from auth import optional_user, require_user
from database import db
from models import GigCreate, GigQuery, GigUpdate
from services.gig_service import (
    build_pagination,
    gig_update_fields,
    new_gig_document,
    owns_gig,
    search_gigs,
    serialize_gig,
)
from services.review_service import rating_summary
from services.stores import GigStore, OrderCounter
from utils import get_logger

router = APIRouter(prefix="/api/gigs", tags=["gigs"])
logger = get_logger(__name__)


def get_gig_store() -> GigStore:
    return GigStore(db.gigs)


def get_order_counter() -> OrderCounter:
    return OrderCounter(db.orders)


def get_reviews() -> AsyncIOMotorCollection:
    return db.reviews


def _failure(message: str, error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": message, "error": str(error)},
    )


async def _owned_gig(store: GigStore, gig_id: str, user_id: str, action: str) -> Dict[str, Any]:
    """Load a gig and check the caller may mutate it.

    Raises:
        HTTPException: 404 when the gig is missing, 403 when not the owner.
    """
    gig = await store.get(gig_id)
    if not gig:
        raise HTTPException(status_code=404, detail="Gig not found")
    if not owns_gig(gig, user_id):
        raise HTTPException(status_code=403, detail=f"You are not authorized to {action} this gig")
    return gig


@router.get("")
async def list_gigs(
    request: Request,
    user_id: Optional[str] = Depends(optional_user),
    store: GigStore = Depends(get_gig_store),
    counter: OrderCounter = Depends(get_order_counter),
):
    """Filter, sort and paginate active gigs, each with an `orderCount`.

    `sellerId=me` scopes the listing to the authenticated caller. Without a
    caller that scope owns nothing, so the page is empty.
    """
    params = dict(request.query_params)
    own_gigs = params.get("sellerId") == "me"
    if own_gigs:
        params["sellerId"] = user_id
    query = GigQuery.model_validate(params)
    if own_gigs and user_id is None:
        pagination = build_pagination(query.page, query.limit, query.skip, 0, 0)
        return {
            "success": True,
            "data": {"gigs": [], "pagination": pagination.model_dump(by_alias=True)},
        }
    try:
        gigs, pagination = await search_gigs(store, counter, query)
    except PyMongoError as e:
        logger.exception("Error fetching gigs")
        return _failure("Failed to fetch gigs", e)
    return {
        "success": True,
        "data": {"gigs": gigs, "pagination": pagination.model_dump(by_alias=True)},
    }


@router.post("", status_code=201)
async def create_gig(
    payload: GigCreate,
    user_id: str = Depends(require_user),
    store: GigStore = Depends(get_gig_store),
):
    """Publish a gig owned by the caller."""
    try:
        gig = await store.insert(new_gig_document(payload, user_id))
    except PyMongoError as e:
        logger.exception("Error creating gig")
        return _failure("Failed to create gig", e)
    logger.info("Gig %s created by %s", gig["_id"], user_id)
    return {"success": True, "message": "Gig created successfully", "data": serialize_gig(gig)}


@router.get("/{gig_id}")
async def get_gig(gig_id: str, store: GigStore = Depends(get_gig_store)):
    """Return a single gig regardless of its active flag."""
    gig = await store.get(gig_id)
    if not gig:
        raise HTTPException(status_code=404, detail="Gig not found")
    return {"success": True, "data": serialize_gig(gig)}


@router.get("/{gig_id}/rating")
async def get_gig_rating(gig_id: str, reviews: AsyncIOMotorCollection = Depends(get_reviews)):
    """Average public review rating, polled by the listing view."""
    try:
        summary = await rating_summary(reviews, gig_id)
    except PyMongoError as e:
        logger.exception("Error computing rating for gig %s", gig_id)
        return _failure("Failed to fetch rating", e)
    return {"success": True, "data": summary.model_dump(by_alias=True)}


@router.put("/{gig_id}")
async def update_gig(
    gig_id: str,
    payload: GigUpdate,
    user_id: str = Depends(require_user),
    store: GigStore = Depends(get_gig_store),
):
    """Apply a partial update to a gig the caller owns."""
    await _owned_gig(store, gig_id, user_id, "update")
    updated = await store.update(gig_id, gig_update_fields(payload))
    if not updated:
        raise HTTPException(status_code=404, detail="Gig not found")
    return {"success": True, "message": "Gig updated successfully", "data": serialize_gig(updated)}


@router.delete("/{gig_id}")
async def delete_gig(
    gig_id: str,
    user_id: str = Depends(require_user),
    store: GigStore = Depends(get_gig_store),
):
    """Delete a gig the caller owns."""
    await _owned_gig(store, gig_id, user_id, "delete")
    await store.delete(gig_id)
    logger.info("Gig %s deleted by %s", gig_id, user_id)
    return {"success": True, "message": "Gig deleted successfully"}


@router.patch("/{gig_id}/toggle")
async def toggle_gig(
    gig_id: str,
    user_id: str = Depends(require_user),
    store: GigStore = Depends(get_gig_store),
):
    """Flip the gig's active flag."""
    gig = await _owned_gig(store, gig_id, user_id, "update")
    active = not gig.get("active", True)
    updated = await store.update(gig_id, {"active": active, "updatedAt": datetime.now(timezone.utc)})
    if not updated:
        raise HTTPException(status_code=404, detail="Gig not found")
    state = "activated" if active else "deactivated"
    return {"success": True, "message": f"Gig {state} successfully", "data": serialize_gig(updated)}
