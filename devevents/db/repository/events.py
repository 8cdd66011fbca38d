from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument


class EventsRepository:
    def __init__(self, collection):
        self.collection = collection

    async def find_one(self, query):
        return await self.collection.find_one(query)

    async def find_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one({"slug": slug})

    async def find_many(self, query, sort=None) -> List[Dict[str, Any]]:
        cursor = self.collection.find(query)

        if sort:
            cursor = cursor.sort(sort)

        return [doc async for doc in cursor]

    async def insert_one(self, event):
        result = await self.collection.insert_one(event)
        return result.inserted_id

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        """Check whether any event other than ``exclude_id`` already owns ``slug``."""
        query: Dict[str, Any] = {"slug": slug}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await self.collection.count_documents(query, limit=1) > 0

    async def update_if_version(
        self,
        event_id: str,
        expected_version: int,
        update_data: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Compare-and-swap update keyed on identity and version.

        Sets ``update_data``, bumps ``version`` by one and refreshes
        ``updated_at`` in a single atomic write. Returns the updated document,
        or None when no document matched (missing, or version moved on).
        """
        return await self.collection.find_one_and_update(
            {"_id": event_id, "version": expected_version},
            {
                "$set": {**update_data, "updated_at": datetime.now(timezone.utc)},
                "$inc": {"version": 1},
            },
            return_document=ReturnDocument.AFTER,
        )
