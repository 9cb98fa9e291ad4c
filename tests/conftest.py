from __future__ import annotations

import os
from pathlib import Path
import sys

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from infrastructure.timestamp_store import SqliteTimestampStore  # noqa: E402


@pytest.fixture
def store(tmp_path: Path):
    db = SqliteTimestampStore(tmp_path / "cache" / "image_cache.db")
    yield db
    db.close()


@pytest.fixture
def photo_dir(tmp_path: Path) -> Path:
    path = tmp_path / "photos"
    path.mkdir()
    return path


@pytest.fixture
def make_image():
    """Factory writing a small image, optionally with EXIF tags and a fixed mtime."""

    def _make(path: Path, exif: dict[int, object] | None = None, mtime: int | None = None) -> Path:
        img = Image.new("RGB", (8, 8), color="red")
        if exif:
            data = Image.Exif()
            for tag, value in exif.items():
                data[tag] = value
            img.save(path, exif=data)
        else:
            img.save(path)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make
