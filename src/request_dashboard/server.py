"""FastAPI relay for chat webhooks plus a JSON view of the request list."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import Settings, get_settings
from .relay import RelayError, forward_in_background, forward_payload
from .viewmodel import RequestListViewModel

logger = logging.getLogger(__name__)

app = FastAPI(title="Request Dashboard Relay")

RELAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


def _add_cors(app: FastAPI) -> None:
    """Let the browser dashboard read /requests from another origin (no cookies)."""
    origins_env = os.getenv("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip() for o in origins_env.split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


_add_cors(app)


def _build_view_model(settings: Settings) -> RequestListViewModel:
    """Separated so tests can point the view-model at a fake Row Source."""
    return RequestListViewModel.from_settings(settings)


def _non_post_response(settings: Settings) -> Response:
    if settings.relay_non_post == "reject":
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"message": "Method not allowed"},
            headers={"Allow": "POST"},
        )
    return PlainTextResponse("OK")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.api_route("/forward", methods=RELAY_METHODS)
@app.api_route("/api/forward", methods=RELAY_METHODS)
async def forward(request: Request, background_tasks: BackgroundTasks) -> Response:
    """
    Relay a webhook payload byte-for-byte to the automation script.

    RELAY_MODE=sync waits for the downstream answer (bounded by
    RELAY_TIMEOUT_SECONDS); RELAY_MODE=background answers first and forwards
    afterwards.
    """
    settings = get_settings()
    if request.method != "POST":
        return _non_post_response(settings)

    target = settings.relay_target_url
    if not target:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="RELAY_TARGET_URL is not configured.",
        )

    body = await request.body()
    try:
        json.loads(body)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be valid JSON.",
        ) from exc

    timeout = settings.relay_timeout_seconds
    if settings.relay_mode == "background":
        background_tasks.add_task(forward_in_background, body, target, timeout=timeout)
        return JSONResponse(content={"status": "accepted"})

    try:
        result = await forward_payload(body, target, timeout=timeout)
    except RelayError as exc:
        logger.error("Forward error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return JSONResponse(
        content={"status": "forwarded", "downstream_status": result.status_code}
    )


@app.get("/requests")
async def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
) -> Dict[str, Any]:
    """Cleaned, sorted and filtered request rows, cache first."""
    view_model = _build_view_model(get_settings())
    try:
        if status_filter is not None:
            view_model.set_filter(status_filter)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc

    await view_model.initialize()
    return view_model.view().model_dump()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "request_dashboard.server:app",
        host=os.getenv("RELAY_HOST", "0.0.0.0"),
        port=int(os.getenv("RELAY_PORT", "8000")),
        reload=os.getenv("RELAY_RELOAD", "false").lower() == "true",
    )
