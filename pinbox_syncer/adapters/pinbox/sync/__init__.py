"""Pinbox -> vault sync pipeline."""

from pinbox_syncer.adapters.pinbox.sync.deletion import BookmarkDeleter, extract_bookmark_id
from pinbox_syncer.adapters.pinbox.sync.images import ImageLocalizer
from pinbox_syncer.adapters.pinbox.sync.materializer import BookmarkMaterializer
from pinbox_syncer.adapters.pinbox.sync.note_builder import build_note, note_path
from pinbox_syncer.adapters.pinbox.sync.service import PinboxSyncService

__all__ = [
    "BookmarkDeleter",
    "BookmarkMaterializer",
    "ImageLocalizer",
    "PinboxSyncService",
    "build_note",
    "extract_bookmark_id",
    "note_path",
]
