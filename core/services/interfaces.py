"""Core service interfaces.

The reconciler depends on these abstractions so that the SQLite store and the
Pillow-based metadata reader stay in the infrastructure layer.
"""

from __future__ import annotations

from collections.abc import Iterable

from core.models import CacheEntry


class ITimestampStore:
    """Interface for a scope-partitioned filename -> capture instant cache."""

    def ensure_scope(self, scope: str) -> None:
        """Create the cache namespace for `scope` if it does not exist."""
        raise NotImplementedError

    def list_filenames(self, scope: str) -> set[str]:
        """Return all filenames cached for `scope`."""
        raise NotImplementedError

    def upsert(self, scope: str, filename: str, captured_at: int) -> None:
        """Insert or replace one entry."""
        raise NotImplementedError

    def upsert_many(self, scope: str, entries: Iterable[CacheEntry]) -> None:
        """Insert or replace several entries in one transaction."""
        raise NotImplementedError

    def delete_many(self, scope: str, filenames: Iterable[str]) -> None:
        """Delete entries for `filenames` atomically; absent names are ignored."""
        raise NotImplementedError

    def list_sorted(self, scope: str) -> list[CacheEntry]:
        """Return entries of `scope` ordered by capture instant ascending."""
        raise NotImplementedError


class IMetadataResolver:
    """Interface for resolving the capture instant of an image file."""

    def resolve_capture_instant(self, path: str) -> int | None:
        """Return a Unix timestamp for `path`, or None if the file is unreadable."""
        raise NotImplementedError
