"""HTTP client for the automation script that serves request rows."""

from __future__ import annotations

import json
import logging
from typing import Any, List

import httpx

logger = logging.getLogger(__name__)


class RowSourceError(RuntimeError):
    """The Row Source was unreachable or answered with something other than a JSON array."""


async def fetch_rows(client: httpx.AsyncClient, url: str) -> List[Any]:
    """GET the row array; anything but 200 + JSON array raises RowSourceError."""
    try:
        response = await client.get(url, follow_redirects=True)
    except httpx.HTTPError as exc:
        raise RowSourceError(f"Row Source request failed: {exc}") from exc

    if response.status_code != httpx.codes.OK:
        raise RowSourceError(f"Row Source returned HTTP {response.status_code}")

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RowSourceError("Row Source returned a non-JSON body") from exc

    if not isinstance(payload, list):
        raise RowSourceError(
            f"Row Source returned {type(payload).__name__}, expected a JSON array"
        )
    logger.debug("Fetched %d raw rows from %s", len(payload), url)
    return payload
