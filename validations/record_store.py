from abc import ABC, abstractmethod
from typing import Optional

from .models import ValidationRecord


class StoreConfigurationError(ValueError):
    """A provider was constructed without the settings it requires."""


class RecordStore(ABC):
    """
    Persistence contract shared by every provider.
    Records are written once by save_validation and never updated.
    """

    @abstractmethod
    async def save_validation(self, schema: str, json: str) -> str:
        """Store the pair under a fresh id and return that id."""
        pass

    @abstractmethod
    async def get_validation(self, id: str) -> Optional[ValidationRecord]:
        """Return the record, or None when it never existed or has expired."""
        pass

    async def ensure_indexes(self):
        pass  # No-op unless the backend needs server-side setup

    async def close(self):
        pass
