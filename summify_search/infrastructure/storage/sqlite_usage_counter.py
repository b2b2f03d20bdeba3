"""Per-subscriber query counter on SQLite.

``increment`` is one ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING`` statement,
so concurrent searches by the same subscriber cannot lose updates. Given a
limit, the same statement refuses to move the counter past it. Resetting on
billing-cycle rollover happens outside this service (``reset`` exists for it).
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from summify_search.domain.errors import StorageError


class SQLiteUsageCounter:
    def __init__(self, db_path: Path | str) -> None:
        try:
            if str(db_path) != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS usage_counters (
                    subscriber_id TEXT PRIMARY KEY,
                    queries_used INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            self._conn.commit()
        except (OSError, sqlite3.Error) as ex:
            raise StorageError(f"usage counter unavailable: {ex}") from ex
        self._lock = threading.Lock()

    def close(self) -> None:
        self._conn.close()

    def increment(self, subscriber_id: str, limit: int | None = None) -> int | None:
        if limit is not None and limit <= 0:
            return None
        with self._lock:
            try:
                rows = self._conn.execute(
                    """
                    INSERT INTO usage_counters(subscriber_id, queries_used) VALUES (?, 1)
                    ON CONFLICT(subscriber_id)
                    DO UPDATE SET queries_used = queries_used + 1
                    WHERE ? IS NULL OR queries_used < ?
                    RETURNING queries_used
                    """,
                    (subscriber_id, limit, limit),
                ).fetchall()
                self._conn.commit()
            except sqlite3.Error as ex:
                self._conn.rollback()
                raise StorageError(f"usage increment failed: {ex}") from ex
        return int(rows[0][0]) if rows else None

    def current(self, subscriber_id: str) -> int:
        with self._lock:
            try:
                row = self._conn.execute(
                    "SELECT queries_used FROM usage_counters WHERE subscriber_id = ?",
                    (subscriber_id,),
                ).fetchone()
            except sqlite3.Error as ex:
                raise StorageError(f"usage read failed: {ex}") from ex
        return int(row[0]) if row else 0

    def set(self, subscriber_id: str, value: int) -> None:
        with self._lock:
            try:
                self._conn.execute(
                    """
                    INSERT INTO usage_counters(subscriber_id, queries_used) VALUES (?, ?)
                    ON CONFLICT(subscriber_id) DO UPDATE SET queries_used = excluded.queries_used
                    """,
                    (subscriber_id, max(value, 0)),
                )
                self._conn.commit()
            except sqlite3.Error as ex:
                self._conn.rollback()
                raise StorageError(f"usage write failed: {ex}") from ex

    def reset(self, subscriber_id: str) -> None:
        self.set(subscriber_id, 0)
