"""Request list view-model: cache-first loading, filtering and cell expansion state.

One instance owns everything a renderer needs:

- ``snapshot``: the cleaned, sorted rows currently known (replaced wholesale)
- ``loading``: True until a fresh cache hit or a fetch attempt has settled
- ``filter_state``: one of ``rows.FILTER_CHOICES``
- ``expansion``: per-cell "show full text" flags

``initialize`` follows stale-while-revalidate: cached rows are published
before the network answers, and a failed revalidation never erases them.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import httpx

from .cache import CACHE_TTL_MS, CacheStore, is_fresh, now_ms
from .clipboard import copy_to_clipboard
from .config import Settings
from .models import CacheEntry, RequestListView
from .row_source import RowSourceError, fetch_rows
from .rows import (
    FILTER_ALL,
    Row,
    Snapshot,
    apply_filter,
    clean_and_sort,
    derive_headers,
    normalize_filter,
    render_value,
    toggle_expanded,
)

logger = logging.getLogger(__name__)

ExpansionKey = Tuple[str, Hashable, str]

SOURCE_NONE = "none"
SOURCE_FRESH_CACHE = "fresh-cache"
SOURCE_STALE_CACHE = "stale-cache"
SOURCE_NETWORK = "network"


def _default_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=15.0)


class RequestListViewModel:
    def __init__(
        self,
        source_url: Optional[str],
        cache: CacheStore,
        *,
        client_factory: Callable[[], httpx.AsyncClient] = _default_client_factory,
        clock: Callable[[], int] = now_ms,
        cache_ttl_ms: int = CACHE_TTL_MS,
        row_id_field: str = "ID",
    ) -> None:
        self.source_url = source_url
        self.cache = cache
        self.client_factory = client_factory
        self.clock = clock
        self.cache_ttl_ms = cache_ttl_ms
        self.row_id_field = row_id_field

        self.snapshot: Snapshot = []
        self.loading = True
        self.filter_state = FILTER_ALL
        self.expansion: Dict[ExpansionKey, bool] = {}
        self.source = SOURCE_NONE
        self.last_error: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RequestListViewModel":
        timeout = settings.row_source_timeout_seconds
        return cls(
            settings.row_source_url,
            CacheStore(settings.cache_path),
            client_factory=lambda: httpx.AsyncClient(timeout=timeout),
            cache_ttl_ms=settings.cache_ttl_seconds * 1000,
            row_id_field=settings.row_id_field,
        )

    # --- Loading ----------------------------------------------------------

    def _publish(self, snapshot: Snapshot, source: str) -> None:
        self.snapshot = snapshot
        self.source = source
        # Positional flags would now point at different rows.
        self.expansion = {
            key: flag for key, flag in self.expansion.items() if key[0] == "id"
        }

    def _load_cache(self) -> bool:
        """Publish cached rows if any; returns True only for a fresh entry."""
        entry = self.cache.read()
        if entry is None:
            self.loading = True
            return False
        rows = clean_and_sort(entry.rows)
        if is_fresh(entry, self.clock(), self.cache_ttl_ms):
            logger.info("Loaded %d rows from fresh cache", len(rows))
            self._publish(rows, SOURCE_FRESH_CACHE)
            self.loading = False
            return True
        logger.info("Cache expired, showing %d stale rows while revalidating", len(rows))
        self._publish(rows, SOURCE_STALE_CACHE)
        self.loading = True
        return False

    async def _fetch(self) -> List[Any]:
        if not self.source_url:
            raise RowSourceError("ROW_SOURCE_URL is not configured")
        async with self.client_factory() as client:
            return await fetch_rows(client, self.source_url)

    async def initialize(self) -> None:
        """Show cached rows right away, then revalidate against the Row Source."""
        fetch_task = asyncio.ensure_future(self._fetch())
        try:
            fresh_cache = self._load_cache()
        except Exception as exc:
            logger.warning("Ignoring cached rows that could not be loaded: %s", exc)
            self._publish([], SOURCE_NONE)
            self.loading = True
            fresh_cache = False
        had_snapshot = self.source != SOURCE_NONE

        try:
            raw_rows = await fetch_task
        except RowSourceError as exc:
            logger.warning("Failed to fetch fresh data: %s", exc)
            self.last_error = str(exc)
            if not had_snapshot:
                self._publish([], SOURCE_NONE)
            self.loading = False
            return

        fresh = clean_and_sort(raw_rows)
        if not fresh_cache or fresh != self.snapshot:
            logger.info("Fetched %d rows from the network", len(fresh))
            self._publish(fresh, SOURCE_NETWORK)
            try:
                self.cache.write(CacheEntry(captured_at=self.clock(), rows=fresh))
            except OSError as exc:
                logger.warning("Could not update cache: %s", exc)
        self.loading = False

    # --- Projections ------------------------------------------------------

    @property
    def displayed_rows(self) -> Snapshot:
        return apply_filter(self.snapshot, self.filter_state)

    @property
    def headers(self) -> List[str]:
        return derive_headers(self.displayed_rows, self.snapshot)

    @property
    def counts(self) -> Tuple[int, int]:
        return len(self.displayed_rows), len(self.snapshot)

    def set_filter(self, value: str) -> None:
        self.filter_state = normalize_filter(value)

    def view(self) -> RequestListView:
        rows = self.displayed_rows
        return RequestListView(
            loading=self.loading,
            source=self.source,
            filter=self.filter_state,
            shown=len(rows),
            total=len(self.snapshot),
            headers=derive_headers(rows, self.snapshot),
            rows=rows,
            error=self.last_error,
        )

    # --- Cells ------------------------------------------------------------

    def _cell(self, row_index: int, field_index: int) -> Tuple[Row, str]:
        rows = self.displayed_rows
        headers = derive_headers(rows, self.snapshot)
        if not 0 <= row_index < len(rows):
            raise IndexError(f"row {row_index} is not displayed")
        if not 0 <= field_index < len(headers):
            raise IndexError(f"field {field_index} is not displayed")
        return rows[row_index], headers[field_index]

    def _expansion_key(self, row_index: int, field_index: int) -> ExpansionKey:
        row, field = self._cell(row_index, field_index)
        row_id = row.get(self.row_id_field)
        if row_id is not None and str(row_id).strip():
            return ("id", str(row_id), field)
        return ("pos", row_index, field)

    def toggle_expand(self, row_index: int, field_index: int) -> bool:
        """Flip the expanded flag for a displayed cell and return the new value."""
        key = self._expansion_key(row_index, field_index)
        self.expansion = toggle_expanded(self.expansion, key)
        return self.expansion[key]

    def is_expanded(self, row_index: int, field_index: int) -> bool:
        return self.expansion.get(self._expansion_key(row_index, field_index), False)

    def cell_text(self, row_index: int, field_index: int, *, expanded: Optional[bool] = None) -> str:
        row, field = self._cell(row_index, field_index)
        if expanded is None:
            expanded = self.is_expanded(row_index, field_index)
        return render_value(field, row.get(field), expanded)

    def copy_cell(self, row_index: int, field_index: int, **clipboard_options: Any) -> bool:
        text = self.cell_text(row_index, field_index, expanded=True)
        return copy_to_clipboard(text, **clipboard_options)
