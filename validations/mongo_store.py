import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from .config import MONGO_URI, MONGO_DB_NAME, MONGO_COLLECTION_NAME, MONGO_RETENTION_SECONDS
from .ids import generate_id
from .models import ValidationRecord, utc_timestamp
from .record_store import RecordStore, StoreConfigurationError

logger = logging.getLogger(__name__)

TTL_INDEX_NAME = "ttl_expiry"


class MongoRecordStore(RecordStore):
    """
    Managed store: one MongoDB document per record, keyed by _id.

    Expiry is left to MongoDB's TTL monitor, which removes a document some time
    after its `ttl` date has passed. A record can therefore still be returned
    shortly after it nominally expired.
    """

    def __init__(
        self,
        collection_name: Optional[str] = MONGO_COLLECTION_NAME,
        uri: Optional[str] = MONGO_URI,
        db_name: str = MONGO_DB_NAME,
        retention_seconds: int = MONGO_RETENTION_SECONDS,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        if not collection_name:
            raise StoreConfigurationError(
                "MONGO_COLLECTION_NAME environment variable is required for the MongoDB provider"
            )

        self.retention = timedelta(seconds=retention_seconds)
        self.client = client if client is not None else AsyncIOMotorClient(uri)
        self.db = self.client[db_name]
        self.collection = self.db[collection_name]

    async def ensure_indexes(self):
        """Bind MongoDB's native expiry to the `ttl` field (expire at that exact date)."""
        await self.collection.create_index(
            [("ttl", ASCENDING)], expireAfterSeconds=0, name=TTL_INDEX_NAME
        )

    async def save_validation(self, schema: str, json: str) -> str:
        id = generate_id()
        now = datetime.now(timezone.utc)
        doc = {
            "_id": id,
            "schema": schema,
            "json": json,
            "created_at": utc_timestamp(now),
            "ttl": now + self.retention,
        }

        try:
            await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Failed to save validation {id}: {e}")
            raise

        logger.debug(f"Saved validation {id}, expires at {doc['ttl'].isoformat()}")
        return id

    async def get_validation(self, id: str) -> Optional[ValidationRecord]:
        try:
            doc = await self.collection.find_one({"_id": id})
        except PyMongoError as e:
            logger.error(f"Failed to read validation {id}: {e}")
            raise

        if not doc:
            return None

        return ValidationRecord(
            id=doc["_id"],
            schema=doc["schema"],
            json=doc["json"],
            created_at=doc["created_at"],
        )

    async def close(self):
        self.client.close()
