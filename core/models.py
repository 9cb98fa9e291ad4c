"""Core domain models for cached capture timestamps and ordered image lists."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CacheEntry:
    """A single cached row: one filename and its capture instant (Unix seconds)."""

    filename: str
    captured_at: int


@dataclass(frozen=True)
class ImageInfo:
    """An image in a directory listing, ordered by `shot_at`."""

    path: str
    shot_at: int


@dataclass
class ExifData:
    """Human-formatted EXIF fields shown next to an image."""

    shutter_speed: str | None = None
    aperture: str | None = None
    iso: int | None = None
    focal_length_35mm: str | None = None
    model: str | None = None
    date_time_original: str | None = None


@dataclass
class ReconcilePlan:
    """Differences between a directory listing and its cached entries.

    Attributes:
        directory: Effective directory that was listed.
        scope: Cache scope key derived from `directory`.
        to_add: Filenames on disk that have no cached entry.
        to_remove: Cached filenames that are no longer on disk.
    """

    directory: str
    scope: str
    to_add: set[str] = field(default_factory=set)
    to_remove: set[str] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        """True when the cache already matches the directory."""
        return not self.to_add and not self.to_remove


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass.

    Attributes:
        directory: Effective directory that was reconciled.
        images: Ordered images for the directory after the pass.
        added: Filenames inserted into the cache.
        removed: Filenames deleted from the cache.
        skipped: Filenames whose capture instant could not be resolved.
    """

    directory: str
    images: list[ImageInfo]
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
