"""Utilities for capture-date extraction (EXIF and filesystem) and EXIF formatting.

This module centralizes date parsing and metadata extraction so the rest of the
app can depend on a single behavior. It uses best-effort parsing and will not
raise on errors; callers should expect `None` when data is not available.
"""

from __future__ import annotations

from datetime import datetime, timezone
import math
import os
from typing import Any

from PIL import Image, UnidentifiedImageError
from loguru import logger
from pillow_heif import register_heif_opener

register_heif_opener()

EXIF_DT_FMT = "%Y:%m:%d %H:%M:%S"

# EXIF tag numbers
TAG_MODEL = 272
TAG_EXIF_IFD = 0x8769
TAG_EXPOSURE_TIME = 33434
TAG_F_NUMBER = 33437
TAG_PHOTOGRAPHIC_SENSITIVITY = 34855
TAG_DATE_TIME_ORIGINAL = 36867
TAG_FOCAL_LENGTH_35MM = 41989

_READ_ERRORS = (
    OSError,
    UnidentifiedImageError,
    Image.DecompressionBombError,
    ValueError,
    TypeError,
    SyntaxError,
)


def read_exif(path: str) -> Image.Exif | None:
    """Open `path` with Pillow and return its EXIF block, or None."""
    try:
        with Image.open(path) as im:
            exif = im.getexif()
            # Materialize the Exif sub-IFD while the file is still open.
            exif.get_ifd(TAG_EXIF_IFD)
            return exif
    except _READ_ERRORS as ex:
        logger.debug("EXIF read failed for {}: {}", path, ex)
        return None


def exif_value(exif: Any, tag: int) -> Any:
    """Look up `tag` in the Exif sub-IFD first, then in the primary IFD."""
    try:
        sub = exif.get_ifd(TAG_EXIF_IFD)
    except (KeyError, ValueError, TypeError, AttributeError):
        sub = {}
    value = sub.get(tag) if sub else None
    if value is None:
        value = exif.get(tag)
    return value


def clean_exif_text(value: Any) -> str | None:
    """Decode an EXIF ASCII value and strip trailing NULs and whitespace."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    text = str(value).rstrip("\x00").strip()
    return text or None


def parse_exif_datetime(value: Any) -> int | None:
    """Parse an EXIF `YYYY:MM:DD HH:MM:SS` string as UTC; return Unix seconds."""
    text = clean_exif_text(value)
    if not text:
        return None
    try:
        dt = datetime.strptime(text, EXIF_DT_FMT)
    except ValueError:
        return None
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def get_exif_datetime_original(path: str) -> int | None:
    """Extract EXIF DateTimeOriginal as a Unix timestamp (naive time read as UTC)."""
    exif = read_exif(path)
    if not exif:
        return None
    return parse_exif_datetime(exif_value(exif, TAG_DATE_TIME_ORIGINAL))


def get_modified_timestamp(path: str) -> int | None:
    """File modification time in whole Unix seconds, or None if stat fails."""
    try:
        return int(os.stat(path).st_mtime)
    except OSError as ex:
        logger.debug("stat failed for {}: {}", path, ex)
        return None


def _to_float(val: Any) -> float:
    if isinstance(val, tuple) and len(val) == 2:
        num, den = val
        return float(num) / float(den) if den else float(num)
    result = float(val)
    # Pillow reports x/0 rationals as NaN
    if math.isnan(result):
        raise ValueError(f"undefined rational: {val!r}")
    return result


def format_exposure(value: Any) -> str | None:
    """Render an exposure time as `1/125s` or `2s`."""
    try:
        seconds = _to_float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if not seconds > 0:
        return None
    if seconds < 1:
        inverse = 1.0 / seconds
        denom = round(inverse)
        # 1/N only when the exposure really is a unit fraction
        if denom > 1 and abs(inverse - denom) <= 0.02 * inverse:
            return f"1/{denom}s"
    return f"{round(seconds, 1):g}s"


def format_fnumber(value: Any) -> str | None:
    """Render an f-number as `f/2.8`."""
    try:
        return f"f/{round(_to_float(value), 1):g}"
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def format_focal_length(value: Any) -> str | None:
    """Render a 35mm-equivalent focal length as `50mm`."""
    try:
        return f"{round(_to_float(value)):d}mm"
    except (TypeError, ValueError, ZeroDivisionError):
        return None


def parse_iso(value: Any) -> int | None:
    """ISO may be stored as an int or a sequence of ints; return the first."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
