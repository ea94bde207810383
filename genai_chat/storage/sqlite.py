"""SQLiteSnapshotStore: key/value snapshots using stdlib sqlite3."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from ..core.store import SnapshotStore
from .codec import dt_to_str

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS snapshots (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    saved_at TEXT NOT NULL
);
"""


class SQLiteSnapshotStore(SnapshotStore):
    """Snapshots keyed by storage identifier, one row per key."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None
        self._ensure_schema()

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        conn.executescript(SCHEMA_SQL)
        conn.commit()

    def load(self, key: str) -> str | None:
        row = self._get_conn().execute(
            "SELECT payload FROM snapshots WHERE key = ?", (key,)
        ).fetchone()
        return row["payload"] if row else None

    def save(self, key: str, payload: str) -> None:
        conn = self._get_conn()
        conn.execute(
            "INSERT OR REPLACE INTO snapshots (key, payload, saved_at) VALUES (?, ?, ?)",
            (key, payload, dt_to_str(datetime.now(timezone.utc))),
        )
        conn.commit()

    def saved_at(self, key: str) -> datetime | None:
        row = self._get_conn().execute(
            "SELECT saved_at FROM snapshots WHERE key = ?", (key,)
        ).fetchone()
        return datetime.fromisoformat(row["saved_at"]) if row else None

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        conn.execute("DELETE FROM snapshots WHERE key = ?", (key,))
        conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
