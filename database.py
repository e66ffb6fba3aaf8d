"""Database client initialization for Gigboard.

Exposes a Motor AsyncIOMotorClient and database handle for reuse. Includes a
readiness check and index setup used during application startup.
"""
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, TEXT

from config import DATABASE_NAME, MONGODB_URI
from utils import get_logger

logger = get_logger(__name__)

client = AsyncIOMotorClient(MONGODB_URI)
db = client[DATABASE_NAME]


async def ping_db() -> bool:
    """Ping the MongoDB server to verify connectivity.

    Errors are logged without raising to avoid crashing the app on
    non-critical startup checks.
    """
    try:
        await client.admin.command("ping")
        logger.info("MongoDB connection OK (%s)", DATABASE_NAME)
        return True
    except Exception as e:  # noqa: BLE001 - startup check only
        logger.error("MongoDB ping failed: %s", e)
        return False


async def ensure_indexes() -> None:
    """Create the indexes the listing queries rely on.

    The text index backs the free-text `q` filter; the others match the
    filter/sort combinations issued by the discovery pipeline.
    """
    await db.gigs.create_index([("title", TEXT), ("description", TEXT), ("skills", TEXT)])
    await db.gigs.create_index([("category", ASCENDING), ("active", ASCENDING)])
    await db.gigs.create_index([("sellerId", ASCENDING), ("active", ASCENDING)])
    await db.gigs.create_index([("active", ASCENDING), ("createdAt", DESCENDING)])
    await db.gigs.create_index([("active", ASCENDING), ("price", ASCENDING)])
    await db.gigs.create_index([("active", ASCENDING), ("rating", DESCENDING)])
    await db.orders.create_index([("gigId", ASCENDING)])
    await db.reviews.create_index([("gigId", ASCENDING)])
