"""
SQLite-backed content store.

Durable key-value persistence for the small JSON blobs the provisioning
subsystem keeps: installed-model records, the installed-models index, the
selected-model pointer and the persisted style configuration.

Key properties:
- Implements exactly the same interface as InMemoryContentStore
- One table, one row per key, upsert on write (last writer wins)
- Blocking sqlite3 calls run in the default executor so the event loop
  is never blocked
- Missing keys are not errors; operational failures raise ContentStoreError
"""

import asyncio
import logging
import sqlite3
from functools import partial
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from .base import ContentStore, ContentStoreError

logger = logging.getLogger(__name__)


class SQLiteContentStore(ContentStore):
    """
    Key-value store persisted in a single SQLite table.

    Design:
    - Table: content_store(key TEXT PRIMARY KEY, value TEXT, updated_at)
    - A fresh connection per operation (sqlite3 connections are not
      shared across executor threads)
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Args:
            db_path: Path to SQLite database file.
                    If None, uses ':memory:' which only lives as long as a
                    single connection, so it is only useful for smoke tests.
        """
        self.db_path = db_path or ":memory:"
        self._initialize_db()

    def _initialize_db(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.db_path)
            cursor = conn.cursor()

            if self.db_path != ":memory:":
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=FULL")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS content_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
            conn.close()
            logger.debug(f"SQLite content store initialized: {self.db_path}")
        except sqlite3.Error as e:
            # First real operation will surface the error as ContentStoreError
            logger.error(f"Failed to initialize SQLite content store: {str(e)}")

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(fn, *args))
        except sqlite3.Error as e:
            logger.error(f"SQLite content store error: {str(e)}")
            raise ContentStoreError(f"Content store unavailable: {str(e)}") from e

    def _get(self, key: str) -> Optional[str]:
        conn = sqlite3.connect(self.db_path)
        try:
            row = conn.execute(
                "SELECT value FROM content_store WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def _set(self, key: str, value: str) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO content_store (key, value) VALUES (?, ?)
                ON CONFLICT(key)
                DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def _remove(self, keys: Sequence[str]) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.executemany(
                "DELETE FROM content_store WHERE key = ?", [(k,) for k in keys]
            )
            conn.commit()
        finally:
            conn.close()

    def _list_keys(self) -> List[str]:
        conn = sqlite3.connect(self.db_path)
        try:
            rows = conn.execute("SELECT key FROM content_store ORDER BY key").fetchall()
        finally:
            conn.close()
        return [row[0] for row in rows]

    async def get(self, key: str) -> Optional[str]:
        return await self._run(self._get, key)

    async def set(self, key: str, value: str) -> None:
        await self._run(self._set, key, value)
        logger.debug(f"Content store write: key={key}")

    async def remove(self, keys: Sequence[str]) -> None:
        if not keys:
            return
        await self._run(self._remove, list(keys))

    async def list_keys(self) -> List[str]:
        return await self._run(self._list_keys)
