"""Pinbox bookmark service integration."""

from pinbox_syncer.adapters.pinbox.auth import derive_user_id
from pinbox_syncer.adapters.pinbox.client import PinboxClient
from pinbox_syncer.adapters.pinbox.models import (
    CollectionPage,
    DeletionResult,
    PinboxBookmark,
    PinboxCollection,
    SyncReport,
)

__all__ = [
    "CollectionPage",
    "DeletionResult",
    "PinboxBookmark",
    "PinboxClient",
    "PinboxCollection",
    "SyncReport",
    "derive_user_id",
]
