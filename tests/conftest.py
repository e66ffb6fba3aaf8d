"""Shared fixtures: in-memory stand-ins for the gig store and order counter."""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from main import app
from routes.gigs import get_gig_store, get_order_counter, get_reviews
from services.stores import gig_id_forms, to_object_id

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _lookup(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _matches(doc: Dict[str, Any], filter_: Dict[str, Any]) -> bool:
    """Evaluate the subset of MongoDB filters the planner emits."""
    for key, cond in filter_.items():
        if key == "$text":
            term = cond["$search"].lower()
            haystack = " ".join(
                [doc.get("title", ""), doc.get("description", ""), *doc.get("skills", [])]
            ).lower()
            if not any(word in haystack for word in term.split()):
                return False
            continue
        value = _lookup(doc, key)
        if isinstance(cond, dict):
            if "$lte" in cond and not (value is not None and value <= cond["$lte"]):
                return False
            if "$in" in cond and value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class FakeGigStore:
    """In-memory GigStore with the same coroutine methods."""

    def __init__(self, gigs: Optional[List[Dict[str, Any]]] = None) -> None:
        self.gigs: List[Dict[str, Any]] = list(gigs or [])
        self.find_calls: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None

    async def find(self, filter_, sort, skip=0, limit=0):
        if self.fail_with is not None:
            raise self.fail_with
        self.find_calls.append({"filter": filter_, "sort": list(sort), "skip": skip, "limit": limit})
        docs = [dict(g) for g in self.gigs if _matches(g, filter_)]
        for key, direction in reversed(list(sort)):
            docs.sort(key=lambda d: _lookup(d, key), reverse=direction < 0)
        docs = docs[skip:]
        return docs[:limit] if limit else docs

    async def count(self, filter_):
        if self.fail_with is not None:
            raise self.fail_with
        return sum(1 for g in self.gigs if _matches(g, filter_))

    async def get(self, gig_id):
        oid = to_object_id(gig_id)
        for g in self.gigs:
            if g["_id"] == oid:
                return dict(g)
        return None

    async def insert(self, doc):
        stored = {**doc, "_id": ObjectId()}
        self.gigs.append(stored)
        return dict(stored)

    async def update(self, gig_id, fields):
        oid = to_object_id(gig_id)
        for g in self.gigs:
            if g["_id"] == oid:
                g.update(fields)
                return dict(g)
        return None

    async def delete(self, gig_id):
        oid = to_object_id(gig_id)
        before = len(self.gigs)
        self.gigs = [g for g in self.gigs if g["_id"] != oid]
        return len(self.gigs) < before


class FakeOrderCounter:
    """Order counter backed by a list of order gigIds; chosen gigs can fail."""

    def __init__(self, order_gig_ids: Optional[List[Any]] = None) -> None:
        self.order_gig_ids = list(order_gig_ids or [])
        self.failing: set = set()
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def count_for_gig(self, gig_id):
        self.calls.append(str(gig_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if str(gig_id) in self.failing:
                raise RuntimeError("orders collection unavailable")
            forms = gig_id_forms(gig_id)
            return sum(1 for ref in self.order_gig_ids if ref in forms)
        finally:
            self.in_flight -= 1


class _Aggregate:
    def __init__(self, rows):
        self._rows = rows

    async def to_list(self, length=None):
        return self._rows[:length] if length else list(self._rows)


class FakeReviews:
    """Reviews collection that answers the rating pipeline from stored docs."""

    def __init__(self, reviews: Optional[List[Dict[str, Any]]] = None) -> None:
        self.reviews = list(reviews or [])
        self.pipelines: List[Any] = []

    def aggregate(self, pipeline):
        self.pipelines.append(pipeline)
        match = pipeline[0]["$match"]
        forms = match["gigId"]["$in"]
        rows = [r for r in self.reviews if r["gigId"] in forms and r.get("isPublic") is not False]
        if not rows:
            return _Aggregate([])
        avg = sum(r["rating"] for r in rows) / len(rows)
        return _Aggregate([{"_id": None, "avg_rating": avg, "count": len(rows)}])


def make_gig(
    title: str = "Logo design",
    prices: Optional[List[float]] = None,
    price: float = 0,
    index: int = 0,
    **overrides: Any,
) -> Dict[str, Any]:
    """Build a stored gig document; `index` orders creation time."""
    packages = [
        {"name": "Basic", "price": p, "description": "", "deliveryTime": 3, "revisions": 1}
        for p in (prices or [])
    ]
    doc = {
        "_id": ObjectId(),
        "title": title,
        "description": f"{title} service",
        "category": "logo-designing",
        "skills": [],
        "packages": packages,
        "price": price if price or not packages else packages[0]["price"],
        "deliveryTime": 3,
        "sellerId": "seller-1",
        "seller": {"id": "seller-1", "name": "Ana", "level": "Expert"},
        "rating": 0,
        "reviewCount": 0,
        "active": True,
        "createdAt": BASE_TIME + timedelta(minutes=index),
        "updatedAt": BASE_TIME + timedelta(minutes=index),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def gig_store():
    return FakeGigStore()


@pytest.fixture
def order_counter():
    return FakeOrderCounter()


@pytest.fixture
def reviews():
    return FakeReviews()


@pytest.fixture
def api_client(gig_store, order_counter, reviews):
    """TestClient with the Mongo collaborators swapped for in-memory fakes."""
    app.dependency_overrides[get_gig_store] = lambda: gig_store
    app.dependency_overrides[get_order_counter] = lambda: order_counter
    app.dependency_overrides[get_reviews] = lambda: reviews
    yield TestClient(app)
    app.dependency_overrides.clear()
