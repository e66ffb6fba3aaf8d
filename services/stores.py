"""MongoDB-backed collaborators of the discovery pipeline.

`GigStore` wraps the `gigs` collection behind find/count with a sort spec and
skip/limit slicing, plus the single-document operations used by the owner
routes. `OrderCounter` counts orders that reference a gig. Both are thin on
purpose so tests can swap in in-memory doubles with the same methods.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

SortSpec = Sequence[Tuple[str, int]]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an ObjectId, returning None for anything that is not one."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def gig_id_forms(gig_id: Any) -> List[Any]:
    """Return every representation an order may use to reference a gig.

    Orders store `gigId` either as the raw string or as an ObjectId.
    """
    forms: List[Any] = [str(gig_id)]
    oid = to_object_id(gig_id)
    if oid is not None:
        forms.append(oid)
    return forms


class GigStore:
    """Listing store over a Motor collection."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def find(
        self,
        filter_: Dict[str, Any],
        sort: SortSpec,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        cursor = self.collection.find(filter_).sort(list(sort)).skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=limit or None)

    async def count(self, filter_: Dict[str, Any]) -> int:
        return await self.collection.count_documents(filter_)

    async def get(self, gig_id: Any) -> Optional[Dict[str, Any]]:
        oid = to_object_id(gig_id)
        if oid is None:
            return None
        return await self.collection.find_one({"_id": oid})

    async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.collection.insert_one(doc)
        return {**doc, "_id": result.inserted_id}

    async def update(self, gig_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = to_object_id(gig_id)
        if oid is None:
            return None
        return await self.collection.find_one_and_update(
            {"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )

    async def delete(self, gig_id: Any) -> bool:
        oid = to_object_id(gig_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0


class OrderCounter:
    """Counts orders per gig over a Motor collection."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def count_for_gig(self, gig_id: Any) -> int:
        return await self.collection.count_documents({"gigId": {"$in": gig_id_forms(gig_id)}})
