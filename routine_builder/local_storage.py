from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger("routine_builder.storage")


class LocalStorage:
    """Durable string key/value store backed by a single JSON file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        """Purpose: Initialize the store and hydrate it from disk if available.
        Inputs/Outputs: Input is an optional file path; no return value.
        Side Effects / State: Loads existing keys into an in-memory dict.
        Dependencies: Calls _load.
        Failure Modes: A corrupt backing file is logged and treated as empty.
        If Removed: Selections are lost between runs.
        Testing Notes: Write a key, build a new instance on the same path, read it back.
        """
        self._path = path
        self._items: Dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        """Purpose: Load persisted keys from disk into memory.
        Inputs/Outputs: Reads from self._path; no return value.
        Side Effects / State: Populates _items.
        Dependencies: Uses json.loads.
        Failure Modes: Missing file, unreadable file, or JSONDecodeError leaves the cache empty.
        If Removed: Previously stored keys are never restored on startup.
        Testing Notes: Corrupt JSON should not crash.
        """
        if not self._path or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("storage unreadable path=%s error=%s", self._path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("storage ignored path=%s reason=not-an-object", self._path)
            return
        self._items = {str(key): str(value) for key, value in data.items() if isinstance(value, str)}

    def _persist(self, items: Dict[str, str]) -> None:
        """Purpose: Write the given keys to disk.
        Inputs/Outputs: Input is the full key/value mapping; writes to self._path.
        Side Effects / State: Creates the parent directory when needed.
        Dependencies: Uses json.dumps and Path.write_text.
        Failure Modes: IO errors raise exceptions (not caught here).
        If Removed: Values never survive a restart.
        Testing Notes: Ensure the file holds a flat JSON object of strings.
        """
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        # Memory only changes once the file write succeeded.
        items = dict(self._items)
        items[key] = value
        self._persist(items)
        self._items = items

    def remove_item(self, key: str) -> None:
        if key not in self._items:
            return
        items = {name: value for name, value in self._items.items() if name != key}
        self._persist(items)
        self._items = items
