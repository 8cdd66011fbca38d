import asyncio

from devevents.core.config import MONGO_DB_NAME, MONGO_TIMEOUT_MS, MONGO_URI
from devevents.db.session import close_client, create_client, ensure_collections_exist


async def initialize_db():
    client = create_client(MONGO_URI, MONGO_TIMEOUT_MS)
    try:
        # Ensure collections and indexes exist
        await ensure_collections_exist(client[MONGO_DB_NAME])
    finally:
        close_client(client)
    print(f"Database {MONGO_DB_NAME} initialized.")


# Run this script to initialize the database
if __name__ == "__main__":
    asyncio.run(initialize_db())
