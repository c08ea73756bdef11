"""Persistent key-value store backed by SQLite.

Holds the few values that must survive a restart: the bot owner, the
one-time-password secret and the OTP timeout.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA = "CREATE TABLE IF NOT EXISTS KeyValue (key TEXT PRIMARY KEY, value TEXT)"


class StorageError(Exception):
    """Raised when the database cannot be opened or used."""


class KeyValueStore:
    """String key-value table in a single SQLite file.

    Usage::

        async with KeyValueStore("./mybot.sqlite") as store:
            await store.set("owner_id", "1234")
            owner = await store.get("owner_id")
    """

    def __init__(self, path: Path | str) -> None:
        self._path = str(path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        if self._db is not None:
            return
        try:
            self._db = await aiosqlite.connect(self._path)
            await self._db.execute(SCHEMA)
            await self._db.commit()
        except (OSError, aiosqlite.Error) as e:
            raise StorageError(f"Cannot open database {self._path}: {e}") from e
        logger.info("Opened database %s", self._path)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> KeyValueStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageError("Store is not open")
        return self._db

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        cursor = await self._connection().execute(
            "SELECT value FROM KeyValue WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        await cursor.close()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        db = self._connection()
        await db.execute(
            "INSERT OR REPLACE INTO KeyValue (key, value) VALUES (?, ?)", (key, value)
        )
        await db.commit()
        logger.debug("Stored key %s", key)
