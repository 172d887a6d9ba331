"""Device-scoped key-value record store.

Two interchangeable engines share one contract:
- SqliteRecordStore: durable, a single `records` table in a SQLite file
- MemoryRecordStore: process-local dict, same quota semantics

Values are JSON documents. Writes that would push the total stored size
past the quota raise StorageFullError and leave the previous value intact.
No multi-key transactions are offered.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import structlog

from edumate.core.errors import StorageFullError

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/state/edumate.db")

# Roughly what a browser grants a single origin
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


def _encode(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _record_size(key: str, text: str) -> int:
    return len(key.encode("utf-8")) + len(text.encode("utf-8"))


class RecordStore:
    """Synchronous key-value persistence primitive."""

    def __init__(self, quota_bytes: int = DEFAULT_QUOTA_BYTES):
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Any | None:
        """Return the decoded value for key, or None if absent."""
        text = self._read(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("record_store.corrupt_value", key=key, error=str(e))
            return None

    def set(self, key: str, value: Any) -> None:
        """Store value under key.

        Raises:
            StorageFullError: If the write would exceed the quota
        """
        text = _encode(value)
        required = self._used_bytes(exclude=key) + _record_size(key, text)
        if required > self.quota_bytes:
            logger.warning(
                "record_store.quota_exceeded",
                key=key,
                required=required,
                quota=self.quota_bytes,
            )
            raise StorageFullError(key, required, self.quota_bytes)

        self._write(key, text)
        logger.debug("record_store.write", key=key, size=len(text))

    def delete(self, key: str) -> None:
        """Remove key. Absent keys are ignored."""
        self._remove(key)
        logger.debug("record_store.delete", key=key)

    def list_keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with prefix, sorted."""
        raise NotImplementedError

    def used_bytes(self) -> int:
        """Total bytes currently counted against the quota."""
        return self._used_bytes(exclude=None)

    # Engine hooks

    def _read(self, key: str) -> str | None:
        raise NotImplementedError

    def _write(self, key: str, text: str) -> None:
        raise NotImplementedError

    def _remove(self, key: str) -> None:
        raise NotImplementedError

    def _used_bytes(self, exclude: str | None) -> int:
        raise NotImplementedError


class MemoryRecordStore(RecordStore):
    """Record store kept in a dict; lost when the process exits."""

    def __init__(self, quota_bytes: int = DEFAULT_QUOTA_BYTES):
        super().__init__(quota_bytes)
        self._data: dict[str, str] = {}

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def _read(self, key: str) -> str | None:
        return self._data.get(key)

    def _write(self, key: str, text: str) -> None:
        self._data[key] = text

    def _remove(self, key: str) -> None:
        self._data.pop(key, None)

    def _used_bytes(self, exclude: str | None) -> int:
        return sum(
            _record_size(k, v) for k, v in self._data.items() if k != exclude
        )


class SqliteRecordStore(RecordStore):
    """Record store backed by a single SQLite table."""

    def __init__(
        self,
        db_path: Path | None = None,
        quota_bytes: int = DEFAULT_QUOTA_BYTES,
    ):
        super().__init__(quota_bytes)
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            _create_schema(conn)

        logger.info("record_store.initialized", path=str(self.db_path))

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection, commit on success, roll back on error."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def list_keys(self, prefix: str = "") -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT key FROM records WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        return [row["key"] for row in rows]

    def _read(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM records WHERE key = ?", (key,)
            ).fetchone()
        return None if row is None else row["value"]

    def _write(self, key: str, text: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO records (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, text),
            )

    def _remove(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM records WHERE key = ?", (key,))

    def _used_bytes(self, exclude: str | None) -> int:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT COALESCE(SUM(
                    LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))
                ), 0) AS used
                FROM records
                WHERE key != ?
                """,
                (exclude or "",),
            ).fetchone()
        return int(row["used"])


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create the records table. Idempotent."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS records (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );
        """
    )
