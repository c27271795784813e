"""Configuration helpers for the relay and the request dashboard."""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

    relay_target_url: str | None = Field(
        None,
        alias="RELAY_TARGET_URL",
        description="Automation script URL that receives forwarded webhook payloads.",
    )
    row_source_url: str | None = Field(
        None,
        alias="ROW_SOURCE_URL",
        description="Automation script URL that returns the request rows as a JSON array.",
    )
    relay_mode: Literal["sync", "background"] = Field(
        "sync",
        alias="RELAY_MODE",
        description=(
            "'sync' awaits the forward before responding; "
            "'background' responds immediately and forwards afterwards."
        ),
    )
    relay_non_post: Literal["ok", "reject"] = Field(
        "ok",
        alias="RELAY_NON_POST",
        description="Answer non-POST calls on the relay with 200 OK or 405.",
    )
    relay_timeout_seconds: float = Field(5.0, alias="RELAY_TIMEOUT_SECONDS")
    row_source_timeout_seconds: float = Field(15.0, alias="ROW_SOURCE_TIMEOUT_SECONDS")
    cache_path: str | None = Field(
        None,
        alias="DASHBOARD_CACHE_PATH",
        description="Optional override for the dashboard storage file.",
    )
    cache_ttl_seconds: int = Field(
        300,
        alias="CACHE_TTL_SECONDS",
        description="Cached rows younger than this are shown without waiting for the network.",
    )
    row_id_field: str = Field(
        "ID",
        alias="ROW_ID_FIELD",
        description="Field used to keep expanded cells attached to the same row after re-sorting.",
    )
    clipboard_command: str | None = Field(
        None,
        alias="DASHBOARD_CLIPBOARD_COMMAND",
        description="Clipboard command line, e.g. 'wl-copy'; auto-detected when unset.",
    )
    important_fields: List[str] = Field(
        default_factory=lambda: ["Chờ Xác Nhận", "Chờ Đóng"],
        alias="IMPORTANT_FIELDS",
        description="Columns the terminal table highlights (JSON list in the environment).",
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")


def get_settings() -> Settings:
    """Return a fresh settings instance (reads the environment each call)."""
    return Settings()
