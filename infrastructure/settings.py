"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

DEFAULT_SETTINGS: dict[str, Any] = {
    "cache": {"db_path": None},
    "logging": {"dir": None, "level": "INFO"},
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively overlay `override` onto a copy of `base`."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


class JsonSettings:
    """JSON settings reader with dotted-key access over built-in defaults.

    Passing `None` uses the defaults only. A path that does not exist raises
    `FileNotFoundError`.
    """

    def __init__(self, settings_path: str | Path | None = None) -> None:
        self._path = Path(settings_path) if settings_path is not None else None
        data: dict[str, Any] = {}
        if self._path is not None:
            if not self._path.exists():
                raise FileNotFoundError(f"settings.json not found: {self._path}")
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"settings.json must contain an object: {self._path}")
        self._data = _merge(DEFAULT_SETTINGS, data)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present or null."""
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return default if node is None else node

    def get_path(self, key: str, default: str | Path | None = None) -> Path | None:
        """Return dotted `key` as an expanded `Path` (`~` and env vars resolved)."""
        value = self.get(key, default)
        if value is None:
            return None
        return Path(os.path.expandvars(os.path.expanduser(str(value))))
