"""Capture-instant resolution and display metadata built on Pillow EXIF access."""

from __future__ import annotations

from loguru import logger

from core.models import ExifData
from core.services.interfaces import IMetadataResolver
from infrastructure.utils import (
    TAG_DATE_TIME_ORIGINAL,
    TAG_EXPOSURE_TIME,
    TAG_F_NUMBER,
    TAG_FOCAL_LENGTH_35MM,
    TAG_MODEL,
    TAG_PHOTOGRAPHIC_SENSITIVITY,
    clean_exif_text,
    exif_value,
    format_exposure,
    format_fnumber,
    format_focal_length,
    get_exif_datetime_original,
    get_modified_timestamp,
    parse_iso,
    read_exif,
)


class MetadataResolver(IMetadataResolver):
    """Reads the capture instant and display fields of image files."""

    def resolve_capture_instant(self, path: str) -> int | None:
        """Return EXIF DateTimeOriginal, else the file modification time.

        Returns None only when the file cannot be stat'd at all.
        """
        ts = get_exif_datetime_original(path)
        if ts is not None:
            return ts
        logger.debug("No EXIF capture date for {}, using mtime", path)
        return get_modified_timestamp(path)

    def resolve_display_metadata(self, path: str) -> ExifData | None:
        """Collect formatted exposure settings and camera model for `path`."""
        exif = read_exif(path)
        if not exif:
            return None

        data = ExifData()
        exposure = exif_value(exif, TAG_EXPOSURE_TIME)
        if exposure is not None:
            data.shutter_speed = format_exposure(exposure)
        fnumber = exif_value(exif, TAG_F_NUMBER)
        if fnumber is not None:
            data.aperture = format_fnumber(fnumber)
        data.iso = parse_iso(exif_value(exif, TAG_PHOTOGRAPHIC_SENSITIVITY))
        focal = exif_value(exif, TAG_FOCAL_LENGTH_35MM)
        if focal is not None:
            data.focal_length_35mm = format_focal_length(focal)
        data.model = clean_exif_text(exif_value(exif, TAG_MODEL))
        data.date_time_original = clean_exif_text(exif_value(exif, TAG_DATE_TIME_ORIGINAL))
        return data
