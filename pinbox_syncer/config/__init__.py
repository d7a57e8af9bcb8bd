from __future__ import annotations

from .content import ContentFetchConfig
from .integrations import PinboxConfig
from .settings import (
    AppConfig,
    RuntimeConfig,
    Settings,
    SyncOptions,
    load_config,
    resolve_access_token,
)
from .state import StateStore, SyncerState
from .vault import VaultConfig

__all__ = [
    "AppConfig",
    "ContentFetchConfig",
    "PinboxConfig",
    "RuntimeConfig",
    "Settings",
    "StateStore",
    "SyncOptions",
    "SyncerState",
    "VaultConfig",
    "load_config",
    "resolve_access_token",
]
