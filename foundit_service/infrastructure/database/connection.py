"""
MongoDB database connection and utilities
"""
from contextlib import asynccontextmanager
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING
from typing import Optional
import logging

from ...config import settings
from ...domain.repositories import ITransactionManager

logger = logging.getLogger(__name__)


class MongoDB(ITransactionManager):
    """MongoDB connection manager"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None
        self.accounts_collection: Optional[AsyncIOMotorCollection] = None
        self.posts_collection: Optional[AsyncIOMotorCollection] = None
        self.claims_collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self):
        """Connect to MongoDB"""
        self.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
        self.db = self.client[settings.MONGODB_DATABASE]
        self.accounts_collection = self.db[settings.MONGODB_ACCOUNTS_COLLECTION]
        self.posts_collection = self.db[settings.MONGODB_POSTS_COLLECTION]
        self.claims_collection = self.db[settings.MONGODB_CLAIMS_COLLECTION]

        # Unreachable store at startup is fatal
        await self.client.admin.command("ping")

        # Create indexes
        await self.create_indexes()

        logger.info(f"Connected to MongoDB, using database: {settings.MONGODB_DATABASE}")

    async def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def create_indexes(self):
        """Create database indexes, including the uniqueness constraints"""
        await self.accounts_collection.create_index("email", unique=True)
        await self.accounts_collection.create_index("username", unique=True)

        # Newest-first listings
        await self.posts_collection.create_index([("date", DESCENDING)])
        await self.posts_collection.create_index([("user_id", ASCENDING), ("date", DESCENDING)])

        # One claim per (post, claimant)
        await self.claims_collection.create_index(
            [("post_id", ASCENDING), ("claimant_id", ASCENDING)],
            unique=True
        )
        await self.claims_collection.create_index("status")
        await self.claims_collection.create_index([("claimed_at", DESCENDING)])

        logger.info("MongoDB indexes created")

    @property
    def supports_transactions(self) -> bool:
        return settings.MONGODB_TRANSACTIONS

    @asynccontextmanager
    async def transaction(self):
        """Yield a session bound to a transaction, or None when disabled"""
        if not self.supports_transactions:
            yield None
            return

        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session


# Global MongoDB instance
mongodb = MongoDB()


async def get_mongodb() -> MongoDB:
    """Dependency for getting the MongoDB manager"""
    return mongodb
