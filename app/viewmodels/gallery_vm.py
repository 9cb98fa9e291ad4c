"""ViewModel holding a chronologically ordered image list and a cursor."""

from __future__ import annotations

import os

from loguru import logger

from core.models import ImageInfo


class GalleryVM:
    """Tracks the images of the open directory and the currently shown one.

    `commands` must provide `get_sorted_image_list(path)` returning an
    `(images, error)` pair.
    """

    def __init__(self, commands) -> None:
        self._commands = commands
        self.images: list[ImageInfo] = []
        self.current_index: int = -1
        self.last_error: str | None = None

    def open(self, path: str) -> bool:
        """Load the directory of `path` and select `path` if it is one of the images.

        Returns False and keeps the previous list when the lookup fails.
        """
        images, error = self._commands.get_sorted_image_list(path)
        if images is None:
            self.last_error = error
            logger.warning("Open failed for {}: {}", path, error)
            return False
        self.last_error = None
        self.set_images(images, selected=path)
        return True

    def set_images(self, images: list[ImageInfo], selected: str | None = None) -> None:
        """Replace the list; select `selected` when present, else the first image."""
        self.images = list(images)
        self.current_index = 0 if self.images else -1
        if selected:
            target = os.path.normcase(os.path.abspath(selected))
            for i, info in enumerate(self.images):
                if os.path.normcase(info.path) == target:
                    self.current_index = i
                    break

    @property
    def current(self) -> ImageInfo | None:
        """The selected image, or None when the list is empty."""
        if 0 <= self.current_index < len(self.images):
            return self.images[self.current_index]
        return None

    def next(self) -> ImageInfo | None:
        """Advance to the next image, staying on the last one at the end."""
        if self.images:
            self.current_index = min(self.current_index + 1, len(self.images) - 1)
        return self.current

    def previous(self) -> ImageInfo | None:
        """Step back to the previous image, staying on the first one at the start."""
        if self.images:
            self.current_index = max(self.current_index - 1, 0)
        return self.current

    @property
    def image_count(self) -> int:
        """Number of images currently loaded."""
        return len(self.images)
