from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from pinbox_syncer.core.url_utils import DEFAULT_SITE_RULES, SiteRule

from ._validators import _parse_int_in_range

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ContentFetchConfig(BaseModel):
    """Settings for fetching bookmarked web pages."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timeout_sec: int = Field(default=30, validation_alias="CONTENT_FETCH_TIMEOUT_SEC")
    max_attempts: int = Field(default=3, validation_alias="CONTENT_FETCH_MAX_ATTEMPTS")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, validation_alias="CONTENT_FETCH_USER_AGENT")
    min_content_chars: int = Field(
        default=100,
        validation_alias="CONTENT_FETCH_MIN_CONTENT_CHARS",
        description="Pages with less visible text are checked for loading placeholders",
    )
    site_rules: tuple[SiteRule, ...] = Field(default=DEFAULT_SITE_RULES)

    @field_validator("user_agent", mode="before")
    @classmethod
    def _validate_user_agent(cls, value: Any) -> str:
        agent = str(value or "").strip()
        return agent or DEFAULT_USER_AGENT

    @field_validator("timeout_sec", "max_attempts", "min_content_chars", mode="before")
    @classmethod
    def _validate_int_fields(cls, value: Any, info: ValidationInfo) -> int:
        limits = {
            "timeout_sec": (1, 600),
            "max_attempts": (1, 10),
            "min_content_chars": (0, 10_000),
        }
        low, high = limits[info.field_name]
        return _parse_int_in_range(
            value,
            name=info.field_name.replace("_", " "),
            default=cls.model_fields[info.field_name].default,
            low=low,
            high=high,
        )
