from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dotenv import dotenv_values
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

from ._validators import _parse_bool
from .content import ContentFetchConfig
from .integrations import PinboxConfig
from .vault import VaultConfig

if TYPE_CHECKING:
    from .state import SyncerState

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "INFO").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("log_json", mode="before")
    @classmethod
    def _validate_log_json(cls, value: Any) -> bool:
        return _parse_bool(value, default=False)

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Any) -> str | None:
        if value is None:
            return None
        trimmed = str(value).strip()
        return trimmed or None


@dataclass(frozen=True)
class AppConfig:
    pinbox: PinboxConfig
    vault: VaultConfig
    content: ContentFetchConfig
    runtime: RuntimeConfig


@dataclass(frozen=True)
class SyncOptions:
    """Settings snapshot taken once at the start of a sync pass."""

    sync_folder: str
    image_folder: str
    download_images: bool = False
    force: bool = False

    @classmethod
    def from_config(
        cls,
        cfg: AppConfig,
        *,
        state: SyncerState | None = None,
        force: bool = False,
    ) -> SyncOptions:
        """Values set in the environment win; otherwise the stored state, then defaults."""
        vault = cfg.vault
        explicit = vault.model_fields_set

        def _pick(field: str, stored: Any) -> Any:
            if state is None or field in explicit:
                return getattr(vault, field)
            return stored

        return cls(
            sync_folder=_pick("sync_folder", state.sync_folder if state else None),
            image_folder=_pick("image_folder", state.image_folder if state else None),
            download_images=_pick("download_images", state.download_images if state else None),
            force=force,
        )


def resolve_access_token(cfg: AppConfig, state: SyncerState | None = None) -> str:
    """The environment token, falling back to the one stored in the vault."""
    if cfg.pinbox.access_token:
        return cfg.pinbox.access_token
    return state.access_token if state else ""


class Settings(BaseSettings):
    """Application settings loaded automatically from environment variables.

    Uses pydantic-settings for automatic environment variable loading.
    Nested models are populated by matching validation_alias on each field.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    pinbox: PinboxConfig = Field(default_factory=PinboxConfig)
    vault: VaultConfig = Field(default_factory=VaultConfig)
    content: ContentFetchConfig = Field(default_factory=ContentFetchConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="before")
    @classmethod
    def _sections_from_env(cls, data: Any) -> Any:
        """Fill each section from flat variables named by its fields' ``validation_alias``.

        Explicit section dictionaries win, then the process environment, then ``.env``.
        """
        if not isinstance(data, dict):
            return data

        source = {**_dotenv_source(cls.model_config.get("env_file")), **os.environ}
        built = dict(data)
        for section, info in cls.model_fields.items():
            model = info.annotation
            if not (isinstance(model, type) and issubclass(model, BaseModel)):
                continue
            found = {
                name: source[env_name]
                for name, field in model.model_fields.items()
                if (env_name := _first_present(_env_names(field), source)) is not None
            }
            explicit = built.get(section)
            if isinstance(explicit, dict):
                built[section] = {**found, **explicit}
            elif explicit is None and found:
                built[section] = found
        return built

    def as_app_config(self) -> AppConfig:
        return AppConfig(
            pinbox=self.pinbox,
            vault=self.vault,
            content=self.content,
            runtime=self.runtime,
        )


def load_config(**overrides: Any) -> AppConfig:
    """Load application configuration from environment variables and ``.env``.

    Args:
        overrides: Section dictionaries (``pinbox={...}``) that win over the environment.

    Returns:
        Immutable AppConfig instance with all configuration sections.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc
    return settings.as_app_config()


def _dotenv_source(env_file: Any) -> dict[str, str]:
    if not isinstance(env_file, str) or not os.path.isfile(env_file):
        return {}
    return {key: value for key, value in dotenv_values(env_file).items() if value is not None}


def _env_names(field: FieldInfo) -> list[str]:
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        names = [choice for choice in alias.choices if isinstance(choice, str)]
    else:
        names = [alias] if isinstance(alias, str) else []
    if field.alias:
        names.append(field.alias)
    return names


def _first_present(names: list[str], source: dict[str, Any]) -> str | None:
    return next((name for name in names if name in source), None)
