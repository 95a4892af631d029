"""SQLite implementation of the key store."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Optional, Tuple

from .base import KeyStore, Record


class SQLiteKeyStore(KeyStore):
    """Persist key records using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        # One connection is shared across worker threads.
        self._conn_lock = threading.Lock()
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        with self._conn_lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS key_records (
                    path TEXT PRIMARY KEY,
                    document TEXT NOT NULL
                )
                """
            )
            self._conn.commit()

    def close(self) -> None:
        with self._conn_lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Helper methods
    def _fetch(self, path: str) -> Optional[Record]:
        with self._conn_lock:
            row = self._conn.execute(
                "SELECT document FROM key_records WHERE path = ?", (path,)
            ).fetchone()
        return json.loads(row["document"]) if row else None

    def _replace(self, path: str, document: str) -> None:
        with self._conn_lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO key_records (path, document) VALUES (?, ?)",
                (path, document),
            )
            self._conn.commit()

    def _insert_or_fetch(self, path: str, document: str) -> Tuple[Record, bool]:
        with self._conn_lock:
            cur = self._conn.execute(
                "INSERT OR IGNORE INTO key_records (path, document) VALUES (?, ?)",
                (path, document),
            )
            self._conn.commit()
            created = cur.rowcount == 1
            row = self._conn.execute(
                "SELECT document FROM key_records WHERE path = ?", (path,)
            ).fetchone()
        return json.loads(row["document"]), created

    # ------------------------------------------------------------------
    # KeyStore API
    async def get(self, path: str) -> Optional[Record]:
        return await asyncio.to_thread(self._fetch, path)

    async def put(self, path: str, record: Record) -> None:
        await asyncio.to_thread(self._replace, path, json.dumps(record))

    async def create_if_absent(self, path: str, record: Record) -> Tuple[Record, bool]:
        return await asyncio.to_thread(self._insert_or_fetch, path, json.dumps(record))

    def count(self, prefix: str = "") -> int:
        with self._conn_lock:
            row = self._conn.execute(
                "SELECT COUNT(*) AS n FROM key_records WHERE path LIKE ?",
                (f"{prefix}%",),
            ).fetchone()
        return int(row["n"])
