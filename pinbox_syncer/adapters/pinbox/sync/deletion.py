"""Delete a bookmark remotely, then its local note and images."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import httpx

from pinbox_syncer.adapters.pinbox.models import DeletionResult
from pinbox_syncer.adapters.pinbox.sync.images import image_folder_for
from pinbox_syncer.core.logging_utils import log_extra
from pinbox_syncer.domain.exceptions import DomainException, NoteNotFoundError, VaultError

if TYPE_CHECKING:
    from pinbox_syncer.adapters.pinbox.sync.protocols import PinboxClientProtocol
    from pinbox_syncer.adapters.vault.protocols import VaultStorage
    from pinbox_syncer.config.settings import SyncOptions

logger = logging.getLogger(__name__)

FRONTMATTER_ID_RE = re.compile(r"^id:\s*(\d+)", re.MULTILINE)


def extract_bookmark_id(note_text: str) -> int | None:
    match = FRONTMATTER_ID_RE.search(note_text)
    return int(match.group(1)) if match else None


class BookmarkDeleter:
    """Remote deletion always runs first.

    If it fails nothing local is touched. If it succeeds but the local
    removal fails, the result reports the orphaned note.
    """

    def __init__(
        self,
        vault: VaultStorage,
        client: PinboxClientProtocol,
        *,
        correlation_id: str | None = None,
    ) -> None:
        self.vault = vault
        self.client = client
        self.correlation_id = correlation_id

    async def delete(self, note_path: str, options: SyncOptions) -> DeletionResult:
        result = DeletionResult(note_path=note_path)

        try:
            text = await self.vault.read_note(note_path)
        except NoteNotFoundError as exc:
            result.error = exc.message
            return result

        bookmark_id = extract_bookmark_id(text)
        if bookmark_id is None:
            result.error = "Note has no bookmark id in its frontmatter"
            return result
        result.bookmark_id = bookmark_id

        try:
            await self.client.delete_item(bookmark_id)
        except (DomainException, httpx.HTTPError) as exc:
            result.error = f"Remote deletion failed: {exc}"
            logger.warning(
                "bookmark_remote_delete_failed",
                extra=log_extra(
                    correlation_id=self.correlation_id,
                    bookmark_id=bookmark_id,
                    error=str(exc),
                ),
            )
            return result
        result.remote_deleted = True

        try:
            await self.vault.delete_note(note_path)
            result.local_deleted = True
            if options.download_images:
                folder = image_folder_for(options.image_folder, bookmark_id)
                if await self.vault.exists(folder):
                    await self.vault.delete_folder(folder)
                    result.images_removed = True
        except VaultError as exc:
            result.error = f"Deleted remotely but local cleanup failed: {exc.message}"
            logger.error(
                "bookmark_local_delete_failed",
                extra=log_extra(
                    correlation_id=self.correlation_id,
                    bookmark_id=bookmark_id,
                    path=note_path,
                    error=exc.message,
                ),
            )
            return result

        logger.info(
            "bookmark_deleted",
            extra=log_extra(
                correlation_id=self.correlation_id,
                bookmark_id=bookmark_id,
                path=note_path,
                images_removed=result.images_removed,
            ),
        )
        return result
