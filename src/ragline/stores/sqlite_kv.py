# src/ragline/stores/sqlite_kv.py
"""SQLite key-value store implementation."""

import asyncio
import json
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from ragline.stores.base import KeyValueStore

T = TypeVar("T")


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-backed key-value store with optional per-key TTL.

    Values are stored as JSON. Expired keys are invisible to reads and are
    purged lazily when keys are listed.
    """

    def __init__(self, db_path: str) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL
                )
            """)

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        def run() -> T:
            with sqlite3.connect(self.db_path) as conn:
                return fn(conn)

        return await asyncio.to_thread(run)

    async def get(self, key: str) -> Any | None:
        """Get a value, or None if missing or expired."""

        def run(conn: sqlite3.Connection) -> Any | None:
            row = conn.execute(
                "SELECT value FROM kv WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)",
                (key, time.time()),
            ).fetchone()
            return json.loads(row[0]) if row else None

        return await self._run(run)

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Set a value, replacing any existing one."""
        expires_at = time.time() + ttl if ttl is not None else None
        payload = json.dumps(value)

        def run(conn: sqlite3.Connection) -> None:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, expires_at) VALUES (?, ?, ?)",
                (key, payload, expires_at),
            )

        await self._run(run)

    async def delete(self, *keys: str) -> int:
        """Delete keys. Returns how many live keys were removed."""
        if not keys:
            return 0

        def run(conn: sqlite3.Connection) -> int:
            placeholders = ",".join("?" * len(keys))
            live = conn.execute(
                f"SELECT COUNT(*) FROM kv WHERE key IN ({placeholders}) "
                "AND (expires_at IS NULL OR expires_at > ?)",
                (*keys, time.time()),
            ).fetchone()[0]
            conn.execute(f"DELETE FROM kv WHERE key IN ({placeholders})", keys)
            return int(live)

        return await self._run(run)

    async def keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching a glob pattern, sorted."""

        def run(conn: sqlite3.Connection) -> list[str]:
            now = time.time()
            conn.execute(
                "DELETE FROM kv WHERE expires_at IS NOT NULL AND expires_at <= ?", (now,)
            )
            cursor = conn.execute("SELECT key FROM kv WHERE key GLOB ? ORDER BY key", (pattern,))
            return [row[0] for row in cursor.fetchall()]

        return await self._run(run)
