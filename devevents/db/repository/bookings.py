from typing import Any, Dict, Optional


class BookingsRepository:
    def __init__(self, collection):
        self.collection = collection

    async def find_one(self, query) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one(query)

    async def insert_one(self, booking):
        result = await self.collection.insert_one(booking)
        return result.inserted_id

    async def count_for_event(self, event_id: str) -> int:
        return await self.collection.count_documents({"event_id": event_id})
