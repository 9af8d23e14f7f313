"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.config import settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        self.client = AsyncIOMotorClient(settings.mongodb_url)
        self.db = self.client[settings.mongodb_db_name]
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def ping(self) -> None:
        """Round-trip to the server."""
        if self.db is None:
            raise RuntimeError("Database not connected")
        await self.db.command("ping")


# Global database instance
database = Database()


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes the services query by."""
    await db["users"].create_index("email", unique=True)
    await db["time_logs"].create_index(
        [("user_id", ASCENDING), ("start_time", DESCENDING)]
    )
    await db["time_logs"].create_index([("user_id", ASCENDING), ("end_time", ASCENDING)])
    await db["tasks"].create_index("halo_ticket_id")


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
