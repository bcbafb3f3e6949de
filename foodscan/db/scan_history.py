"""Local, append-only scan history used when the remote store is unavailable."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

from .schema import ensure_schema


class LocalScanHistoryDB:
    """Manages the local_scan_history table.

    Each row holds one scan document as JSON, keyed by user. Rows are only
    ever appended.
    """

    def __init__(self, db_path: str | Path = "~/.config/foodscan/history.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def append(self, user_id: str, record: dict) -> int:
        """Append a scan document for ``user_id``.

        Returns:
            The inserted row ID.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO local_scan_history (user_id, local_id, record_json)
               VALUES (?, ?, ?)""",
            (user_id, record.get("id", ""), json.dumps(record, ensure_ascii=False)),
        )
        conn.commit()
        return cur.lastrowid

    def get_records(self, user_id: str) -> list[dict]:
        """Return all scan documents saved for ``user_id``, oldest first."""
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT record_json FROM local_scan_history WHERE user_id = ? ORDER BY id",
            (user_id,),
        ).fetchall()
        return [json.loads(row["record_json"]) for row in rows]

    def count(self, user_id: str) -> int:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM local_scan_history WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        return row["n"]
