"""Command surface exposed to the viewer front end.

Each command returns a `(value, error)` pair: on success `error` is None, on
failure `value` is None and `error` is a message that can be shown as-is.
"""

from __future__ import annotations

import threading

from loguru import logger

from core.errors import ReconcileError
from core.models import ExifData, ImageInfo
from core.services.reconcile_service import DirectoryReconciler
from infrastructure.metadata_service import MetadataResolver


class InitialFileSlot:
    """Holds the file passed on the command line until it is taken once."""

    def __init__(self, path: str | None = None) -> None:
        self._lock = threading.Lock()
        self._path = path

    def take(self) -> str | None:
        """Return the stored path and clear the slot."""
        with self._lock:
            path, self._path = self._path, None
            return path


class ViewerCommands:
    """Facade over reconciliation and metadata lookups for one process."""

    def __init__(
        self,
        reconciler: DirectoryReconciler,
        resolver: MetadataResolver | None = None,
        initial_file: InitialFileSlot | None = None,
    ) -> None:
        self._reconciler = reconciler
        self._resolver = resolver or MetadataResolver()
        self._initial_file = initial_file or InitialFileSlot()

    def get_initial_file(self) -> str | None:
        """Path given at startup; None on every later call."""
        return self._initial_file.take()

    def get_sorted_image_list(self, initial_path: str) -> tuple[list[ImageInfo] | None, str | None]:
        """Images of the directory of `initial_path`, ordered by capture time."""
        try:
            return self._reconciler.reconcile(initial_path), None
        except ReconcileError as ex:
            logger.error("Sorted image list failed for {}: {}", initial_path, ex)
            return None, str(ex)

    def get_image_exif_data(self, path: str) -> tuple[ExifData | None, str | None]:
        """Formatted EXIF fields of `path` for display."""
        data = self._resolver.resolve_display_metadata(path)
        if data is None:
            return None, "Could not get EXIF data"
        return data, None
