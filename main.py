from __future__ import annotations

from dataclasses import asdict
import json
from pathlib import Path
import sys

from loguru import logger

from app.commands import InitialFileSlot, ViewerCommands
from core.errors import StoreError
from core.services.reconcile_service import DirectoryReconciler
from infrastructure.logging import get_default_db_path, init_logging
from infrastructure.metadata_service import MetadataResolver
from infrastructure.settings import JsonSettings
from infrastructure.timestamp_store import SqliteTimestampStore

BASE_DIR = Path(__file__).parent


def build_commands(settings: JsonSettings, initial_file: str | None = None) -> ViewerCommands:
    """Wire the store, resolver and reconciler described by `settings`."""
    db_path = settings.get_path("cache.db_path", get_default_db_path())
    store = SqliteTimestampStore(db_path)
    resolver = MetadataResolver()
    return ViewerCommands(
        DirectoryReconciler(store, resolver),
        resolver=resolver,
        initial_file=InitialFileSlot(initial_file),
    )


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv if argv is None else argv
    settings_file = BASE_DIR / "settings.json"
    settings = JsonSettings(settings_file if settings_file.exists() else None)
    init_logging(settings.get("logging.dir"), settings.get("logging.level", "INFO"))

    try:
        commands = build_commands(settings, argv[1] if len(argv) > 1 else None)
    except StoreError as ex:
        logger.error("Cannot open timestamp cache: {}", ex)
        print(ex, file=sys.stderr)
        return 1
    path = commands.get_initial_file()
    if not path:
        print("usage: main.py <image-or-directory>", file=sys.stderr)
        return 2

    images, error = commands.get_sorted_image_list(path)
    if images is None:
        print(error, file=sys.stderr)
        return 1

    logger.info("Listed {} images for {}", len(images), path)
    for info in images:
        print(json.dumps(asdict(info), ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
