"""Process-local locks guarding the dashboard storage file."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator

_LOCKS: dict[str, Lock] = {}
_LOCKS_GUARD = Lock()


def _lock_for(path: Path) -> Lock:
    key = str(path.expanduser().resolve())
    with _LOCKS_GUARD:
        lock = _LOCKS.setdefault(key, Lock())
    return lock


@contextmanager
def locked_path(path: Path) -> Iterator[None]:
    """Serialize reads and writes of one storage file within this process."""
    with _lock_for(path):
        yield
