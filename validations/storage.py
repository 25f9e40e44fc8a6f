"""
Storage facade.

The provider is chosen once, when the process starts, and the resulting
ValidationStorage is handed to whatever serves requests. Callers only ever see
save_validation / get_validation; expiry details stay inside the providers.
"""
import logging
from enum import Enum
from typing import Optional, Union

from .config import DB_PROVIDER
from .models import ValidationRecord
from .mongo_store import MongoRecordStore
from .sqlite_store import SQLiteRecordStore

logger = logging.getLogger(__name__)

Provider = Union[SQLiteRecordStore, MongoRecordStore]


class ProviderKind(str, Enum):
    SQLITE = "sqlite"
    MONGODB = "mongodb"

    @classmethod
    def parse(cls, value: Union[str, "ProviderKind", None]) -> "ProviderKind":
        """Unknown or missing values fall back to SQLite."""
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            if normalized:
                logger.warning(f"Unknown DB_PROVIDER '{value}', falling back to sqlite")
            return cls.SQLITE


def get_provider(kind: ProviderKind, **options) -> Provider:
    """Construct the provider for `kind`. Configuration errors propagate."""
    if kind is ProviderKind.MONGODB:
        logger.info("Using MongoDB provider")
        return MongoRecordStore(**options)

    logger.info("Using SQLite provider")
    return SQLiteRecordStore(**options)


class ValidationStorage:
    def __init__(self, kind: ProviderKind, provider: Provider):
        self.kind = kind
        self._provider = provider

    async def setup(self):
        """Create backend indexes (MongoDB TTL index; nothing for SQLite)."""
        await self._provider.ensure_indexes()

    async def save_validation(self, schema: str, json: str) -> str:
        return await self._provider.save_validation(schema, json)

    async def get_validation(self, id: str) -> Optional[ValidationRecord]:
        return await self._provider.get_validation(id)

    async def close(self):
        await self._provider.close()


def create_storage(name: Union[str, ProviderKind, None] = DB_PROVIDER, **options) -> ValidationStorage:
    kind = ProviderKind.parse(name)
    return ValidationStorage(kind, get_provider(kind, **options))
