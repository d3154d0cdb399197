"""
SQLite implementation of the state repository.

Used as the default backend for local, single-user use.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Optional

from tradelogic.infra.repository import AbstractStateRepository

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS blobs (
    name       TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteStateRepository(AbstractStateRepository):
    """SQLite-backed repository — one row per named blob."""

    def __init__(self, db_path: str = "tradelogic.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self._db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def initialize(self) -> None:
        conn = self._get_conn()
        conn.execute(_CREATE_TABLE_SQL)
        conn.commit()

    def get_blob(self, name: str) -> Optional[str]:
        conn = self._get_conn()
        row = conn.execute("SELECT value FROM blobs WHERE name = ?", (name,)).fetchone()
        return row["value"] if row else None

    def put_blob(self, name: str, value: str) -> None:
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO blobs (name, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                value      = excluded.value,
                updated_at = excluded.updated_at
            """,
            (name, value, datetime.now(tz=UTC).isoformat()),
        )
        conn.commit()

    def delete_blob(self, name: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM blobs WHERE name = ?", (name,))
        conn.commit()

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
