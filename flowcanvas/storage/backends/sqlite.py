"""SQLite storage backend implementation."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite
import structlog

from flowcanvas.exceptions import StorageError
from flowcanvas.storage.interface import KeyValueStore

logger = structlog.get_logger(__name__)


class SQLiteStore(KeyValueStore):
    """SQLite implementation of the key-value store."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.db_path = self._parse_database_url(database_url)
        self._connection: Optional[aiosqlite.Connection] = None

    def _parse_database_url(self, database_url: str) -> str:
        """Parse database URL to get file path."""
        if database_url.startswith("sqlite+aiosqlite:///"):
            return database_url.replace("sqlite+aiosqlite:///", "")
        elif database_url.startswith("sqlite:///"):
            return database_url.replace("sqlite:///", "")
        elif database_url.startswith("sqlite://"):
            return database_url.replace("sqlite://", "")
        else:
            # Assume it's already a file path
            return database_url

    async def initialize(self) -> None:
        """Initialize the storage backend."""
        if self.db_path != ":memory:":
            if not os.path.isabs(self.db_path):
                self.db_path = os.path.abspath(self.db_path)
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = await aiosqlite.connect(self.db_path)
            await self._create_tables()
        except Exception as e:
            logger.error("sqlite_initialize_failed", path=self.db_path, error=str(e))
            raise

        logger.info("sqlite_initialized", path=self.db_path)

    async def _create_tables(self) -> None:
        await self._connection.executescript("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at DATETIME NOT NULL
            );
        """)
        await self._connection.commit()

    async def close(self) -> None:
        """Close the storage backend."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise StorageError("Storage backend not initialized")
        return self._connection

    async def get(self, key: str) -> Optional[str]:
        connection = self._require_connection()
        async with connection.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        connection = self._require_connection()
        await connection.execute(
            """
            INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, datetime.now(timezone.utc).isoformat()),
        )
        await connection.commit()

    async def delete(self, key: str) -> None:
        connection = self._require_connection()
        await connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await connection.commit()
