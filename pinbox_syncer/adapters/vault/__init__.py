"""Vault storage adapters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pinbox_syncer.adapters.vault.filesystem import FilesystemVault
from pinbox_syncer.adapters.vault.memory import InMemoryVault
from pinbox_syncer.domain.exceptions import FolderExistsError

if TYPE_CHECKING:
    from pinbox_syncer.adapters.vault.protocols import VaultStorage

logger = logging.getLogger(__name__)


async def ensure_folder(vault: VaultStorage, path: str) -> None:
    """Create ``path`` unless it already exists; concurrent creation is tolerated."""
    if not path or await vault.exists(path):
        return
    try:
        await vault.create_folder(path)
    except FolderExistsError:
        logger.debug("vault_folder_already_exists", extra={"path": path})


__all__ = ["FilesystemVault", "InMemoryVault", "ensure_folder"]
