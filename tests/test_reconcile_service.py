from __future__ import annotations

import os
from pathlib import Path
import sys

import pytest

from core.errors import FilesystemError, NotResolvable, StoreError
from core.models import ImageInfo
from core.services.interfaces import IMetadataResolver, ITimestampStore
from core.services.reconcile_service import (
    DirectoryReconciler,
    is_image_name,
    list_image_files,
    resolve_directory,
)
from infrastructure.timestamp_store import SqliteTimestampStore


class FakeResolver(IMetadataResolver):
    """Capture instants keyed by file name; names mapped to None are unresolvable."""

    def __init__(self, timestamps: dict[str, int | None]) -> None:
        self.timestamps = dict(timestamps)
        self.calls: list[str] = []

    def resolve_capture_instant(self, path: str) -> int | None:
        name = os.path.basename(path)
        self.calls.append(name)
        return self.timestamps.get(name)


class BrokenStore(ITimestampStore):
    def ensure_scope(self, scope: str) -> None:
        raise StoreError("disk full")


def _touch(directory: Path, *names: str) -> None:
    for name in names:
        (directory / name).write_bytes(b"")


def _pairs(images: list[ImageInfo]) -> list[tuple[str, int]]:
    return [(os.path.basename(i.path), i.shot_at) for i in images]


def test_two_pass_scenario(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "a.jpg", "b.png")
    resolver = FakeResolver({"a.jpg": 1000, "b.png": 2000, "c.heic": 1500})
    reconciler = DirectoryReconciler(store, resolver)

    assert _pairs(reconciler.reconcile(str(photo_dir))) == [("a.jpg", 1000), ("b.png", 2000)]

    (photo_dir / "a.jpg").unlink()
    _touch(photo_dir, "c.heic")
    assert _pairs(reconciler.reconcile(str(photo_dir))) == [("c.heic", 1500), ("b.png", 2000)]


def test_results_use_absolute_paths(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "a.jpg")
    images = DirectoryReconciler(store, FakeResolver({"a.jpg": 7})).reconcile(str(photo_dir))
    assert images == [ImageInfo(path=os.path.join(str(photo_dir), "a.jpg"), shot_at=7)]


def test_second_pass_is_idempotent_and_writes_nothing(
    photo_dir: Path, store: SqliteTimestampStore
) -> None:
    _touch(photo_dir, "a.jpg", "b.jpeg", "c.png")
    resolver = FakeResolver({"a.jpg": 3, "b.jpeg": 1, "c.png": 2})
    reconciler = DirectoryReconciler(store, resolver)

    first = reconciler.reconcile(str(photo_dir))
    changes = store.total_changes
    resolver.calls.clear()

    second = reconciler.reconcile_detailed(str(photo_dir))
    assert second.images == first
    assert store.total_changes == changes
    assert resolver.calls == []
    assert (second.added, second.removed, second.skipped) == ([], [], [])


def test_orders_by_capture_instant(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "x.jpg", "y.jpg", "z.jpg")
    resolver = FakeResolver({"x.jpg": 300, "y.jpg": 100, "z.jpg": 200})
    images = DirectoryReconciler(store, resolver).reconcile(str(photo_dir))
    assert _pairs(images) == [("y.jpg", 100), ("z.jpg", 200), ("x.jpg", 300)]


def test_extension_filter_is_case_insensitive(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "photo.GIF", "photo.JPG", "notes.txt", "clip.HEIF", "noext")
    (photo_dir / "folder.jpg").mkdir()
    resolver = FakeResolver({"photo.JPG": 1, "clip.HEIF": 2})
    images = DirectoryReconciler(store, resolver).reconcile(str(photo_dir))
    assert _pairs(images) == [("photo.JPG", 1), ("clip.HEIF", 2)]


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("a.jpg", True),
        ("a.JPEG", True),
        ("a.Png", True),
        ("a.heic", True),
        ("a.heif", True),
        ("a.gif", False),
        ("a.jpg.txt", False),
        (".jpg", False),
    ],
)
def test_is_image_name(name: str, expected: bool) -> None:
    assert is_image_name(name) is expected


def test_file_path_uses_its_parent_directory(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "a.jpg", "b.jpg")
    resolver = FakeResolver({"a.jpg": 2, "b.jpg": 1})
    images = DirectoryReconciler(store, resolver).reconcile(str(photo_dir / "a.jpg"))
    assert _pairs(images) == [("b.jpg", 1), ("a.jpg", 2)]


def test_subdirectories_are_not_scanned(photo_dir: Path, store: SqliteTimestampStore) -> None:
    nested = photo_dir / "nested"
    nested.mkdir()
    _touch(nested, "deep.jpg")
    _touch(photo_dir, "top.jpg")
    resolver = FakeResolver({"top.jpg": 1, "deep.jpg": 2})
    images = DirectoryReconciler(store, resolver).reconcile(str(photo_dir))
    assert _pairs(images) == [("top.jpg", 1)]


def test_unresolved_file_is_skipped_then_retried(
    photo_dir: Path, store: SqliteTimestampStore
) -> None:
    _touch(photo_dir, "a.jpg", "ghost.jpg")
    resolver = FakeResolver({"a.jpg": 10, "ghost.jpg": None})
    reconciler = DirectoryReconciler(store, resolver)

    result = reconciler.reconcile_detailed(str(photo_dir))
    assert _pairs(result.images) == [("a.jpg", 10)]
    assert result.skipped == ["ghost.jpg"]
    assert store.list_filenames(str(photo_dir)) == {"a.jpg"}

    resolver.timestamps["ghost.jpg"] = 5
    resolver.calls.clear()
    assert _pairs(reconciler.reconcile(str(photo_dir))) == [("ghost.jpg", 5), ("a.jpg", 10)]
    assert resolver.calls == ["ghost.jpg"]


def test_cache_converges_to_filesystem(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "a.jpg", "b.jpg", "c.jpg")
    resolver = FakeResolver({"a.jpg": 1, "b.jpg": 2, "c.jpg": 3, "d.jpg": 4})
    reconciler = DirectoryReconciler(store, resolver)
    reconciler.reconcile(str(photo_dir))

    (photo_dir / "b.jpg").unlink()
    _touch(photo_dir, "d.jpg")
    result = reconciler.reconcile_detailed(str(photo_dir))

    assert result.added == ["d.jpg"]
    assert result.removed == ["b.jpg"]
    assert store.list_filenames(str(photo_dir)) == list_image_files(photo_dir)


def test_cached_timestamps_are_not_refreshed(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "a.jpg")
    resolver = FakeResolver({"a.jpg": 1})
    reconciler = DirectoryReconciler(store, resolver)
    reconciler.reconcile(str(photo_dir))

    resolver.timestamps["a.jpg"] = 999
    assert _pairs(reconciler.reconcile(str(photo_dir))) == [("a.jpg", 1)]


def test_plan_does_not_write_entries(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "a.jpg")
    plan = DirectoryReconciler(store, FakeResolver({})).plan(str(photo_dir))
    assert plan.to_add == {"a.jpg"}
    assert plan.to_remove == set()
    assert store.list_filenames(plan.scope) == set()


def test_empty_path_is_not_resolvable() -> None:
    with pytest.raises(NotResolvable):
        resolve_directory("")


def test_relative_path_resolves_against_cwd(
    photo_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(photo_dir)
    assert resolve_directory("a.jpg") == photo_dir.resolve()


def test_missing_directory_is_a_filesystem_error(
    tmp_path: Path, store: SqliteTimestampStore
) -> None:
    missing = tmp_path / "missing" / "a.jpg"
    with pytest.raises(FilesystemError):
        DirectoryReconciler(store, FakeResolver({})).reconcile(str(missing))


def test_store_failure_aborts_reconciliation(photo_dir: Path) -> None:
    _touch(photo_dir, "a.jpg")
    with pytest.raises(StoreError):
        DirectoryReconciler(BrokenStore(), FakeResolver({"a.jpg": 1})).reconcile(str(photo_dir))


def _write_undecodable_name(directory: Path) -> None:
    raw = os.path.join(os.fsencode(str(directory)), b"\xff.jpg")
    try:
        with open(raw, "wb"):
            pass
    except OSError as ex:
        pytest.skip(f"filesystem rejects non-UTF-8 names: {ex}")


@pytest.mark.skipif(sys.platform in ("win32", "darwin"), reason="needs byte file names")
def test_undecodable_file_name_is_skipped(photo_dir: Path, store: SqliteTimestampStore) -> None:
    _touch(photo_dir, "ok.jpg")
    _write_undecodable_name(photo_dir)
    resolver = FakeResolver({"ok.jpg": 10})

    assert list_image_files(photo_dir) == {"ok.jpg"}
    images = DirectoryReconciler(store, resolver).reconcile(str(photo_dir))
    assert _pairs(images) == [("ok.jpg", 10)]
    assert resolver.calls == ["ok.jpg"]
