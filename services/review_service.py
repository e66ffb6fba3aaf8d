"""Rating summaries computed from the reviews collection."""
from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection

from models import RatingSummary
from services.stores import gig_id_forms


async def rating_summary(reviews: AsyncIOMotorCollection, gig_id: Any) -> RatingSummary:
    """Average rating over a gig's public reviews.

    Reviews without an `isPublic` flag count as public. No reviews gives 0.
    """
    pipeline = [
        {"$match": {"gigId": {"$in": gig_id_forms(gig_id)}, "isPublic": {"$ne": False}}},
        {"$group": {"_id": None, "avg_rating": {"$avg": "$rating"}, "count": {"$sum": 1}}},
    ]
    agg = await reviews.aggregate(pipeline).to_list(length=1)
    if agg:
        average = float(agg[0].get("avg_rating") or 0.0)
        count = int(agg[0].get("count", 0))
    else:
        average, count = 0.0, 0
    return RatingSummary(gig_id=str(gig_id), average_rating=average, review_count=count)
