from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ._validators import _parse_bool, _validate_vault_folder


class VaultConfig(BaseModel):
    """Where notes, images and the persisted state live inside the vault."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str = Field(default=".", validation_alias="VAULT_PATH")
    sync_folder: str = Field(default="Pinbox", validation_alias="PINBOX_SYNC_FOLDER")
    download_images: bool = Field(default=False, validation_alias="PINBOX_DOWNLOAD_IMAGES")
    image_folder: str = Field(default="Pinbox/.pics", validation_alias="PINBOX_IMAGE_FOLDER")
    state_file: str = Field(default=".pinbox-syncer.json", validation_alias="PINBOX_STATE_FILE")

    @field_validator("path", mode="before")
    @classmethod
    def _validate_path(cls, value: Any) -> str:
        path = str(value or ".").strip()
        if "\x00" in path:
            msg = "Vault path contains invalid characters"
            raise ValueError(msg)
        return path or "."

    @field_validator("sync_folder", "image_folder", "state_file", mode="before")
    @classmethod
    def _validate_folders(cls, value: Any, info: ValidationInfo) -> str:
        return _validate_vault_folder(
            value,
            name=info.field_name.replace("_", " "),
            default=cls.model_fields[info.field_name].default,
        )

    @field_validator("download_images", mode="before")
    @classmethod
    def _validate_download_images(cls, value: Any) -> bool:
        return _parse_bool(value, default=False)
