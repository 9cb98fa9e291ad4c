"""Reconciliation of a directory listing with the persisted timestamp cache.

The service lists the image files of one directory, compares them with the
filenames cached for that directory, applies deletions and insertions, and
returns the cached entries ordered by capture instant. A second pass over an
unchanged directory performs no writes.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from core.errors import FilesystemError, NotResolvable
from core.models import CacheEntry, ImageInfo, ReconcilePlan, ReconcileResult
from core.services.interfaces import IMetadataResolver, ITimestampStore

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "heif", "heic"})


def is_image_name(filename: str) -> bool:
    """True if `filename` has one of the accepted image extensions (any case)."""
    ext = os.path.splitext(filename)[1]
    return ext[1:].lower() in IMAGE_EXTENSIONS


def resolve_directory(path: str) -> Path:
    """Return the directory to index for `path`.

    A directory is used as-is; anything else is treated as a file and its
    parent is used.

    Raises:
        NotResolvable: `path` is empty or has no parent directory.
    """
    if not path:
        raise NotResolvable("Could not get parent directory: empty path")
    target = Path(os.path.abspath(path))
    if target.is_dir():
        return target
    parent = target.parent
    if parent == target:
        raise NotResolvable(f"Could not get parent directory: {path}")
    return parent


def scope_for_directory(directory: Path) -> str:
    """Cache scope key of `directory`: its absolute path as an opaque string."""
    return str(directory)


def list_image_files(directory: Path) -> set[str]:
    """Names of regular image files directly inside `directory` (non-recursive)."""
    names: set[str] = set()
    try:
        with os.scandir(directory) as it:
            for entry in it:
                if not is_image_name(entry.name):
                    continue
                try:
                    entry.name.encode("utf-8")
                except UnicodeEncodeError:
                    logger.debug("Skip undecodable file name {!r} in {}", entry.name, directory)
                    continue
                try:
                    if entry.is_file():
                        names.add(entry.name)
                except OSError as ex:
                    logger.debug("Skip unreadable entry {}: {}", entry.path, ex)
    except OSError as ex:
        raise FilesystemError(f"Cannot list directory {directory}: {ex}") from ex
    return names


class DirectoryReconciler:
    """Keeps the timestamp cache of a directory in sync with the filesystem."""

    def __init__(self, store: ITimestampStore, resolver: IMetadataResolver) -> None:
        self._store = store
        self._resolver = resolver

    def plan(self, path: str) -> ReconcilePlan:
        """Compute files to add and remove for the directory of `path`.

        The cache scope is created if needed; no entry is written.
        """
        directory = resolve_directory(path)
        scope = scope_for_directory(directory)
        self._store.ensure_scope(scope)

        on_disk = list_image_files(directory)
        cached = self._store.list_filenames(scope)
        return ReconcilePlan(
            directory=str(directory),
            scope=scope,
            to_add=on_disk - cached,
            to_remove=cached - on_disk,
        )

    def reconcile_detailed(self, path: str) -> ReconcileResult:
        """Converge the cache for `path` and report what changed.

        Raises:
            ReconcileError: Any step failed. Steps already committed persist.
        """
        plan = self.plan(path)
        if not plan.is_empty:
            logger.info(
                "Reconciling {}: {} new, {} removed",
                plan.directory,
                len(plan.to_add),
                len(plan.to_remove),
            )

        removed = sorted(plan.to_remove)
        if removed:
            self._store.delete_many(plan.scope, removed)

        resolved: list[CacheEntry] = []
        skipped: list[str] = []
        for name in sorted(plan.to_add):
            shot_at = self._resolver.resolve_capture_instant(os.path.join(plan.directory, name))
            if shot_at is None:
                logger.warning("No capture time for {}, skipped", name)
                skipped.append(name)
                continue
            resolved.append(CacheEntry(filename=name, captured_at=shot_at))
        if resolved:
            self._store.upsert_many(plan.scope, resolved)

        images = [
            ImageInfo(path=os.path.join(plan.directory, entry.filename), shot_at=entry.captured_at)
            for entry in self._store.list_sorted(plan.scope)
        ]
        return ReconcileResult(
            directory=plan.directory,
            images=images,
            added=[e.filename for e in resolved],
            removed=removed,
            skipped=skipped,
        )

    def reconcile(self, path: str) -> list[ImageInfo]:
        """Return the images of the directory of `path` ordered by capture instant."""
        return self.reconcile_detailed(path).images
