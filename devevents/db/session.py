import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

logger = logging.getLogger(__name__)

REQUIRED_COLLECTIONS = [
    "events",
    "bookings",
]


def create_client(uri: str, timeout_ms: int) -> AsyncIOMotorClient:
    """Create the Motor client owned by the application lifecycle."""
    return AsyncIOMotorClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms,
        tz_aware=True,
    )


async def ensure_collections_exist(db: AsyncIOMotorDatabase) -> None:
    """Ensure all required collections and indexes exist in the database."""
    existing_collections = await db.list_collection_names()

    for collection in REQUIRED_COLLECTIONS:
        if collection not in existing_collections:
            await db.create_collection(collection)
            logger.info("Created collection: %s", collection)

    # The unique slug index is what makes concurrent renames safe
    await db["events"].create_index([("slug", ASCENDING)], unique=True)
    await db["events"].create_index([("created_at", ASCENDING)])
    await db["events"].create_index([("tags", ASCENDING)])
    await db["bookings"].create_index([("event_id", ASCENDING)])
    await db["bookings"].create_index(
        [("event_id", ASCENDING), ("email", ASCENDING)], unique=True
    )


def close_client(client: AsyncIOMotorClient) -> None:
    client.close()
    logger.info("Closed MongoDB client")
