"""SQLite key-value store.

Provides persistent settings and history storage using a SQLite database file.
Uses aiosqlite for async access.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from .base import KeyValueStore

logger = logging.getLogger(__name__)


class SQLiteStore(KeyValueStore):
    """SQLite-backed key-value store.

    Stores JSON-encoded values in a single table of a SQLite database file.
    Supports persistent storage across sessions.
    """

    def __init__(self, path: str | Path = "./deskmate.db"):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        if self._connection is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._create_schema()
        logger.debug("Opened store at %s", self._db_path)

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLiteStore is not connected. Call connect() first.")
        return self._connection

    async def get(self, key: str, default: Any = None) -> Any:
        connection = self._require_connection()
        async with connection.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (key,)
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable value for key %r", key)
            return default

    async def set(self, key: str, value: Any) -> None:
        connection = self._require_connection()
        now = datetime.now(timezone.utc).isoformat()
        await connection.execute("""
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """, (key, json.dumps(value), now))
        await connection.commit()

    async def delete(self, key: str) -> None:
        connection = self._require_connection()
        await connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await connection.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
