import asyncio
import contextlib
import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional

from .config import DB_PATH, SQLITE_RETENTION_DAYS
from .ids import generate_id
from .models import ValidationRecord
from .record_store import RecordStore

logger = logging.getLogger(__name__)

# Same shape as models.utc_timestamp(), so string comparison orders by time
ISO_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"


class SQLiteRecordStore(RecordStore):
    """
    Embedded store: an in-memory SQLite database mirrored to a single file.

    The whole image is exported and rewritten after every mutation, so save
    latency grows with the size of the store. Records older than the retention
    window are swept at the start of every save and get.
    Single process only; operations on one instance are serialized by a lock.
    """

    def __init__(self, db_path: str = DB_PATH, retention_days: int = SQLITE_RETENTION_DAYS):
        self.db_path = Path(db_path)
        self.retention_days = retention_days
        self.conn: Optional[sqlite3.Connection] = None
        self._init_task: Optional[asyncio.Future] = None
        self._lock = asyncio.Lock()

    async def _ready(self):
        # Every caller awaits the same initialization; a failure is not retried.
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_task)

    async def _initialize(self):
        conn = sqlite3.connect(":memory:", isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            data = self.db_path.read_bytes() if self.db_path.exists() else b""
            if data:
                conn.deserialize(data)
                logger.info(f"Loaded validations database from {self.db_path}")
            else:
                logger.info(f"No database at {self.db_path}, starting with an empty store")

            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS validations (
                    id TEXT PRIMARY KEY,
                    schema TEXT NOT NULL,
                    json TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT ({ISO_NOW})
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_validations_created_at "
                "ON validations(created_at)"
            )
        except Exception as e:
            conn.close()
            logger.error(f"Failed to initialize validations database {self.db_path}: {e}")
            raise

        self.conn = conn

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError("Validations database is closed")
        return self.conn

    def _sweep(self) -> int:
        """Delete records older than the retention window. Returns the number removed."""
        cursor = self._connection().execute(
            "DELETE FROM validations WHERE created_at < strftime('%Y-%m-%dT%H:%M:%fZ', 'now', ?)",
            (f"-{self.retention_days} days",),
        )
        if cursor.rowcount > 0:
            logger.info(f"Swept {cursor.rowcount} expired validations")
        return cursor.rowcount

    def _persist(self):
        """Write the full database image; the old file is replaced only once the new one is complete."""
        data = self._connection().serialize()
        tmp_path = self.db_path.with_name(self.db_path.name + ".tmp")
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self.db_path)
        except OSError as e:
            logger.error(f"Failed to write validations database {self.db_path}: {e}")
            raise

    async def save_validation(self, schema: str, json: str) -> str:
        await self._ready()
        async with self._lock:
            conn = self._connection()
            self._sweep()

            id = generate_id()
            conn.execute(
                "INSERT INTO validations (id, schema, json) VALUES (?, ?, ?)",
                (id, schema, json),
            )
            try:
                self._persist()
            except Exception:
                # The caller never learns this id, so don't keep it in memory either
                conn.execute("DELETE FROM validations WHERE id = ?", (id,))
                raise

        logger.debug(f"Saved validation {id} to {self.db_path}")
        return id

    async def get_validation(self, id: str) -> Optional[ValidationRecord]:
        await self._ready()
        async with self._lock:
            if self._sweep():
                self._persist()

            row = self._connection().execute(
                "SELECT id, schema, json, created_at FROM validations WHERE id = ?",
                (id,),
            ).fetchone()

        if row is None:
            return None
        return ValidationRecord(**dict(row))

    async def close(self):
        # Let a pending initialization finish so it can't assign a connection after close
        if self._init_task is not None:
            with contextlib.suppress(Exception):
                await asyncio.shield(self._init_task)

        async with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
