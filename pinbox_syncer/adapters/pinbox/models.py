"""Pydantic models for the Pinbox API and sync results."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_COLLECTION_ID = 0


class PinboxBookmark(BaseModel):
    """Pinbox bookmark model.

    Tags arrive either as bare strings or as ``{"name": ...}`` records; they are
    normalized to plain strings here so nothing downstream sees the raw shape.
    """

    id: int
    title: str = ""
    url: str = ""
    description: str = ""
    brief: str | None = None
    note: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: str = ""
    item_type: str | None = None
    thumbnail: str | None = None
    cover: str | None = None
    collection_id: int | None = None
    view: int | None = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("title", "url", "description", "created_at", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> list[str]:
        if not value:
            return []
        tags: list[str] = []
        for tag in value:
            if isinstance(tag, str):
                name = tag
            elif isinstance(tag, dict):
                name = tag.get("name") or ""
            else:
                name = getattr(tag, "name", "") or ""
            name = str(name).strip()
            if name:
                tags.append(name)
        return tags

    @property
    def image_url(self) -> str | None:
        return self.thumbnail or self.cover or None


class PinboxCollection(BaseModel):
    """Pinbox collection model. Collection 0 is implicit and never listed."""

    id: int
    parent_id: int | None = None
    name: str = ""
    description: str | None = None
    created_at: str | None = None
    edited_at: str | None = None
    items_count: int = 0

    model_config = {"populate_by_name": True, "extra": "ignore"}


class CollectionPage(BaseModel):
    """One page of collection items together with the collection's total."""

    items: list[PinboxBookmark] = Field(default_factory=list)
    total: int = Field(default=0, alias="items_count")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("items", mode="before")
    @classmethod
    def _none_items(cls, value: Any) -> Any:
        return value or []

    @field_validator("total", mode="before")
    @classmethod
    def _none_total(cls, value: Any) -> Any:
        return value or 0


class SyncReport(BaseModel):
    """Result of one sync pass."""

    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    duration_seconds: float = 0.0
    correlation_id: str | None = None

    def summary(self) -> str:
        if self.total == 0:
            return "No bookmarks to sync"
        parts = [f"{self.created} created"]
        if self.updated:
            parts.append(f"{self.updated} updated")
        parts.append(f"{self.skipped} skipped")
        return f"Synced {self.total} bookmarks: " + ", ".join(parts)


class DeletionResult(BaseModel):
    """Result of deleting one bookmark remotely and locally."""

    note_path: str
    bookmark_id: int | None = None
    remote_deleted: bool = False
    local_deleted: bool = False
    images_removed: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.remote_deleted and self.local_deleted and self.error is None
