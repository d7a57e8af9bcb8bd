"""Persisted syncer settings, stored as JSON inside the vault.

The stored object is merged over the defaults on load, so files written by
older versions (missing keys) and hand-edited files (unknown keys) both load.
"""

from __future__ import annotations

import json
import logging
import posixpath
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from pinbox_syncer.adapters.vault import ensure_folder
from pinbox_syncer.core.time_utils import epoch_millis
from pinbox_syncer.core.url_utils import normalize_path

if TYPE_CHECKING:
    from pinbox_syncer.adapters.vault.protocols import VaultStorage

logger = logging.getLogger(__name__)


class SyncerState(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    access_token: str = ""
    sync_folder: str = "Pinbox"
    auto_sync: bool = False
    sync_interval: int = Field(default=60, ge=1, description="Minutes between auto-sync passes")
    last_sync_time: int = Field(default=0, description="Epoch milliseconds of the last pass")
    enable_dataview_index: bool = False
    dataview_index_path: str = "Pinbox/!Pinbox Index.md"
    download_images: bool = False
    image_folder: str = "Pinbox/.pics"
    first_run: bool = True

    @field_validator("sync_folder", "image_folder", "dataview_index_path", mode="before")
    @classmethod
    def _normalize_folder(cls, value: Any, info: ValidationInfo) -> str:
        normalized = normalize_path(str(value or ""))
        return normalized or cls.model_fields[info.field_name].default

    def mark_synced(self, at_millis: int | None = None) -> None:
        self.last_sync_time = at_millis if at_millis is not None else epoch_millis()
        self.first_run = False


class StateStore:
    """Load and save ``SyncerState`` through the vault storage interface."""

    def __init__(self, vault: VaultStorage, path: str) -> None:
        self._vault = vault
        self._path = path

    async def load(self) -> SyncerState:
        if not await self._vault.exists(self._path):
            return SyncerState()
        try:
            raw = json.loads(await self._vault.read_note(self._path))
        except json.JSONDecodeError as exc:
            logger.warning("syncer_state_unreadable", extra={"path": self._path, "error": str(exc)})
            return SyncerState()
        if not isinstance(raw, dict):
            logger.warning("syncer_state_not_an_object", extra={"path": self._path})
            return SyncerState()

        merged = SyncerState().model_dump()
        merged.update({key: value for key, value in raw.items() if key in merged})
        try:
            return SyncerState.model_validate(merged)
        except ValidationError as exc:
            logger.warning("syncer_state_invalid", extra={"path": self._path, "error": str(exc)})
            return SyncerState()

    async def save(self, state: SyncerState) -> None:
        payload = state.model_dump_json(indent=2)
        await ensure_folder(self._vault, posixpath.dirname(self._path))
        await self._vault.write_note(self._path, payload, overwrite=True)
        logger.debug("syncer_state_saved", extra={"path": self._path})
