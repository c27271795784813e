"""Durable client-side storage for the last fetched request snapshot.

The storage file mimics browser local storage: one JSON object mapping key
names to JSON-encoded strings. The dashboard only ever owns one key.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from .file_lock import locked_path
from .models import CacheEntry

logger = logging.getLogger(__name__)

CACHE_KEY = "requestDashboardData"
CACHE_TTL_MS = 5 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def default_cache_path() -> Path:
    """Storage file location (override via DASHBOARD_CACHE_PATH)."""
    env_path = os.getenv("DASHBOARD_CACHE_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".cache" / "request-dashboard" / "storage.json"


def is_fresh(entry: CacheEntry, now: int, ttl_ms: int = CACHE_TTL_MS) -> bool:
    """A cached snapshot is fresh strictly inside the TTL window."""
    return now - entry.captured_at < ttl_ms


class CacheStore:
    """Read and overwrite the single cached snapshot inside a storage file."""

    def __init__(self, path: Optional[Path | str] = None, key: str = CACHE_KEY):
        self.path = Path(path) if path else default_cache_path()
        self.key = key

    def _load_storage(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("storage file does not hold a JSON object")
        return data

    def _save_storage(self, storage: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(storage, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def read(self) -> Optional[CacheEntry]:
        """Return the cached entry, or None when it is missing or unreadable."""
        try:
            with locked_path(self.path):
                storage = self._load_storage()
            raw = storage.get(self.key)
            if raw is None:
                return None
            return CacheEntry.model_validate_json(raw)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable cache at %s: %s", self.path, exc)
            return None

    def write(self, entry: CacheEntry) -> None:
        """Overwrite the cached entry, keeping any unrelated keys in the file."""
        with locked_path(self.path):
            try:
                storage = self._load_storage()
            except ValueError:
                logger.warning("Replacing corrupt storage file at %s", self.path)
                storage = {}
            storage[self.key] = entry.model_dump_json(by_alias=True)
            self._save_storage(storage)
        logger.debug("Cached %d rows at %s", len(entry.rows), self.path)

    def clear(self) -> bool:
        """Remove the cached entry; returns whether one existed."""
        with locked_path(self.path):
            try:
                storage = self._load_storage()
            except ValueError:
                storage = {}
            existed = storage.pop(self.key, None) is not None
            if existed:
                self._save_storage(storage)
        return existed
