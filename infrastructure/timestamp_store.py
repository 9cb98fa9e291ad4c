"""SQLite persistence for per-directory capture timestamps.

Entries are keyed by `(scope, filename)` in a single table. A scope is the
absolute path of a directory, used as an opaque key so that directories whose
names differ only in punctuation never share entries.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
import re
import sqlite3
import threading

from loguru import logger

from core.errors import StoreError
from core.models import CacheEntry
from core.services.interfaces import ITimestampStore

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS scopes (
        scope TEXT PRIMARY KEY,
        label TEXT NOT NULL,
        created_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS image_timestamps (
        scope TEXT NOT NULL,
        filename TEXT NOT NULL,
        shot_at INTEGER NOT NULL,
        PRIMARY KEY (scope, filename)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_image_timestamps_order
    ON image_timestamps (scope, shot_at, filename)
    """,
)

_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")


def sanitize_scope_name(directory: str) -> str:
    """Return the legacy table-style name for `directory`.

    Every non-alphanumeric character becomes `_`. Distinct paths can map to the
    same name, so the result is only stored as a readable label.
    """
    return _NON_ALNUM.sub("_", directory)


class SqliteTimestampStore(ITimestampStore):
    """Filename -> capture instant cache backed by one SQLite file.

    A single connection is shared by all callers and guarded by a lock, so
    reconciliations started from background tasks never interleave writes.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._path = str(db_path)
        self._lock = threading.RLock()
        try:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self._path, check_same_thread=False, timeout=10.0)
            with self._conn:
                for statement in _SCHEMA:
                    self._conn.execute(statement)
        except (sqlite3.Error, OSError) as ex:
            raise StoreError(f"Cannot open timestamp store {self._path}: {ex}") from ex
        logger.debug("Timestamp store opened: {}", self._path)

    @property
    def path(self) -> str:
        """Location of the database file."""
        return self._path

    @property
    def total_changes(self) -> int:
        """Rows modified through this store since it was opened."""
        with self._lock:
            return self._conn.total_changes

    def ensure_scope(self, scope: str) -> None:
        created_at = int(datetime.now(timezone.utc).timestamp())
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT OR IGNORE INTO scopes (scope, label, created_at) VALUES (?, ?, ?)",
                        (scope, sanitize_scope_name(scope), created_at),
                    )
            except (sqlite3.Error, UnicodeEncodeError) as ex:
                raise StoreError(f"Cannot create cache scope for {scope}: {ex}") from ex

    def list_filenames(self, scope: str) -> set[str]:
        with self._lock:
            try:
                rows = self._conn.execute(
                    "SELECT filename FROM image_timestamps WHERE scope = ?", (scope,)
                ).fetchall()
            except (sqlite3.Error, UnicodeEncodeError) as ex:
                raise StoreError(f"Cannot read cached filenames for {scope}: {ex}") from ex
        return {row[0] for row in rows}

    def upsert(self, scope: str, filename: str, captured_at: int) -> None:
        self.upsert_many(scope, [CacheEntry(filename=filename, captured_at=captured_at)])

    def upsert_many(self, scope: str, entries: Iterable[CacheEntry]) -> None:
        rows = [(scope, e.filename, int(e.captured_at)) for e in entries]
        if not rows:
            return
        with self._lock:
            try:
                with self._conn:
                    self._conn.executemany(
                        "INSERT OR REPLACE INTO image_timestamps (scope, filename, shot_at) "
                        "VALUES (?, ?, ?)",
                        rows,
                    )
            except (sqlite3.Error, UnicodeEncodeError) as ex:
                raise StoreError(f"Cannot write cached timestamps for {scope}: {ex}") from ex

    def delete_many(self, scope: str, filenames: Iterable[str]) -> None:
        rows = [(scope, name) for name in dict.fromkeys(filenames)]
        if not rows:
            return
        with self._lock:
            try:
                with self._conn:
                    self._conn.executemany(
                        "DELETE FROM image_timestamps WHERE scope = ? AND filename = ?", rows
                    )
            except (sqlite3.Error, UnicodeEncodeError) as ex:
                logger.error("Delete rolled back for {} ({} rows): {}", scope, len(rows), ex)
                raise StoreError(f"Cannot delete cached timestamps for {scope}: {ex}") from ex

    def list_sorted(self, scope: str) -> list[CacheEntry]:
        with self._lock:
            try:
                rows = self._conn.execute(
                    "SELECT filename, shot_at FROM image_timestamps WHERE scope = ? "
                    "ORDER BY shot_at ASC, filename ASC",
                    (scope,),
                ).fetchall()
            except (sqlite3.Error, UnicodeEncodeError) as ex:
                raise StoreError(f"Cannot read cached timestamps for {scope}: {ex}") from ex
        return [CacheEntry(filename=name, captured_at=int(ts)) for name, ts in rows]

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SqliteTimestampStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
