from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ._validators import _ensure_token, _parse_bool, _parse_int_in_range

logger = logging.getLogger(__name__)

DEFAULT_PINBOX_BASE_URL = "https://withpinbox.com"


class PinboxConfig(BaseModel):
    """Pinbox bookmark service connection and auto-sync configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(default="", validation_alias="PINBOX_ACCESS_TOKEN")
    base_url: str = Field(default=DEFAULT_PINBOX_BASE_URL, validation_alias="PINBOX_BASE_URL")
    page_size: int = Field(default=50, validation_alias="PINBOX_PAGE_SIZE")
    timeout_sec: int = Field(default=30, validation_alias="PINBOX_TIMEOUT_SEC")
    auto_sync: bool = Field(default=False, validation_alias="PINBOX_AUTO_SYNC")
    sync_interval_minutes: int = Field(
        default=60,
        validation_alias="PINBOX_SYNC_INTERVAL_MINUTES",
        description="Minutes between automatic sync passes",
    )

    @field_validator("access_token", mode="before")
    @classmethod
    def _validate_access_token(cls, value: Any) -> str:
        return _ensure_token(value)

    @field_validator("base_url", mode="before")
    @classmethod
    def _validate_base_url(cls, value: Any) -> str:
        url = str(value or DEFAULT_PINBOX_BASE_URL).strip()
        if not url:
            return DEFAULT_PINBOX_BASE_URL
        if not url.startswith(("http://", "https://")):
            msg = "PINBOX_BASE_URL must be an http(s) URL"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("auto_sync", mode="before")
    @classmethod
    def _validate_auto_sync(cls, value: Any) -> bool:
        return _parse_bool(value, default=False)

    @field_validator("page_size", "timeout_sec", "sync_interval_minutes", mode="before")
    @classmethod
    def _validate_int_fields(cls, value: Any, info: ValidationInfo) -> int:
        limits = {
            "page_size": (1, 200),
            "timeout_sec": (1, 600),
            "sync_interval_minutes": (1, 7 * 24 * 60),
        }
        low, high = limits[info.field_name]
        return _parse_int_in_range(
            value,
            name=info.field_name.replace("_", " "),
            default=cls.model_fields[info.field_name].default,
            low=low,
            high=high,
        )
