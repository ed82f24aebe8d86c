"""
MongoDB connection management.
"""
import logging

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from asset_guardian.core.config import settings

logger = logging.getLogger(__name__)

USERS = "users"
COLLEGES = "colleges"
DEPARTMENTS = "departments"
ITEMS = "items"
ITEM_REQUESTS = "item_requests"
ITEM_TRANSFERS = "item_transfers"
RETURN_REQUESTS = "return_requests"
MAINTENANCE_REQUESTS = "maintenance_requests"
NOTIFICATIONS = "notifications"
WORKFLOW_EVENTS = "workflow_events"


class MongoDB:
    """
    MongoDB connection manager.
    Provides access to the client (for sessions), database and collections.
    """

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

    @classmethod
    def connect_to_mongodb(cls):
        """
        Connect to MongoDB if not already connected.
        Motor connects lazily, so this never blocks.
        """
        if cls.client is None:
            logger.info(f"Connecting to MongoDB at {settings.MONGODB_URL} (database: {settings.MONGODB_DB})")

            cls.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
            cls.db = cls.client[settings.MONGODB_DB]

    @classmethod
    async def close_mongodb_connection(cls):
        """
        Close MongoDB connection if open.
        """
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Closed MongoDB connection")

    @classmethod
    def get_client(cls) -> AsyncIOMotorClient:
        if cls.client is None:
            cls.connect_to_mongodb()
        return cls.client

    @classmethod
    def get_database(cls) -> AsyncIOMotorDatabase:
        """
        Get database instance.

        Returns:
            AsyncIOMotorDatabase instance
        """
        if cls.db is None:
            cls.connect_to_mongodb()
        return cls.db

    @classmethod
    def get_collection(cls, collection_name: str):
        """
        Get collection by name.

        Args:
            collection_name: Name of collection

        Returns:
            AsyncIOMotorCollection instance
        """
        return cls.get_database()[collection_name]

    @classmethod
    async def ensure_indexes(cls):
        """
        Create the unique and lookup indexes the services rely on.
        """
        db = cls.get_database()
        await db[USERS].create_index("email", unique=True)
        await db[COLLEGES].create_index("name", unique=True)
        await db[DEPARTMENTS].create_index([("college_id", pymongo.ASCENDING), ("name", pymongo.ASCENDING)], unique=True)
        await db[ITEMS].create_index("asset_tag", unique=True)
        await db[ITEMS].create_index(
            "serial_number",
            unique=True,
            partialFilterExpression={"serial_number": {"$type": "string"}},
        )
        await db[ITEMS].create_index("current_custodian_id")
        await db[ITEM_REQUESTS].create_index("status")
        # One open workflow record per item; concurrent creators get a duplicate key
        await db[ITEM_TRANSFERS].create_index("item_id", unique=True, partialFilterExpression={"is_open": True})
        await db[ITEM_TRANSFERS].create_index("approving_department_id")
        await db[RETURN_REQUESTS].create_index("item_id", unique=True, partialFilterExpression={"status": "pending"})
        await db[MAINTENANCE_REQUESTS].create_index(
            "item_id", unique=True, partialFilterExpression={"status": "pending"}
        )
        await db[NOTIFICATIONS].create_index([("user_id", pymongo.ASCENDING), ("is_read", pymongo.ASCENDING)])
        await db[WORKFLOW_EVENTS].create_index("created_at")
        logger.info("MongoDB indexes ensured")


mongodb = MongoDB()


# Helper functions to get collections
def get_collection(name: str):
    return mongodb.get_collection(name)


def get_database():
    return mongodb.get_database()


def get_client():
    return mongodb.get_client()
