"""
Create the TTL index on the MongoDB validations collection.
Run once per deployment: python scripts/ensure_ttl_index.py
"""
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from validations.config import setup_logging, MONGO_DB_NAME, MONGO_COLLECTION_NAME
from validations.mongo_store import MongoRecordStore

setup_logging()
logger = logging.getLogger(__name__)


async def ensure_ttl_index():
    store = MongoRecordStore()
    try:
        await store.ensure_indexes()
        logger.info(f"TTL index ready on {MONGO_DB_NAME}.{MONGO_COLLECTION_NAME}")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(ensure_ttl_index())
