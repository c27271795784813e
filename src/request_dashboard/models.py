"""Data models for the request dashboard."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """Snapshot persisted between dashboard runs."""

    model_config = ConfigDict(populate_by_name=True)

    captured_at: int = Field(
        ..., alias="capturedAt", description="Epoch milliseconds when the rows were fetched."
    )
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class RequestListView(BaseModel):
    """JSON projection of the view-model handed to renderers."""

    loading: bool
    source: str
    filter: str
    shown: int
    total: int
    headers: List[str]
    rows: List[Dict[str, Any]]
    error: Optional[str] = None
