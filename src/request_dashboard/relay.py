"""Forward inbound webhook payloads to the spreadsheet automation script."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


class RelayError(RuntimeError):
    """The downstream automation script could not be reached."""


@dataclass
class ForwardResult:
    status_code: int
    text: str


def _build_client(timeout: float) -> httpx.AsyncClient:
    """Create the outbound client; separated for easier testing."""
    return httpx.AsyncClient(timeout=timeout)


async def forward_payload(body: bytes, url: str, *, timeout: float) -> ForwardResult:
    """POST the body unchanged to ``url`` as JSON and return the downstream answer."""
    try:
        async with _build_client(timeout) as client:
            response = await client.post(
                url,
                content=body,
                headers={"Content-Type": "application/json"},
                follow_redirects=True,
            )
    except httpx.HTTPError as exc:
        raise RelayError(f"Forwarding to {url} failed: {exc}") from exc
    logger.info("Forwarded %d bytes, downstream answered %d", len(body), response.status_code)
    return ForwardResult(status_code=response.status_code, text=response.text)


async def forward_in_background(body: bytes, url: str, *, timeout: float) -> None:
    """Fire-and-forget variant: the caller has already been answered."""
    try:
        await forward_payload(body, url, timeout=timeout)
    except RelayError as exc:
        logger.error("Background forward error: %s", exc)
