"""Create (or skip) the local note for one bookmark."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from pinbox_syncer.adapters.pinbox.sync.images import ImageLocalizer
from pinbox_syncer.adapters.pinbox.sync.note_builder import build_note, note_path
from pinbox_syncer.core.logging_utils import log_extra
from pinbox_syncer.core.time_utils import utc_now_iso

if TYPE_CHECKING:
    from collections.abc import Callable

    from pinbox_syncer.adapters.pinbox.models import PinboxBookmark
    from pinbox_syncer.adapters.pinbox.sync.protocols import ContentFetcherProtocol
    from pinbox_syncer.adapters.vault.protocols import VaultStorage
    from pinbox_syncer.config.settings import SyncOptions

logger = logging.getLogger(__name__)

MaterializeOutcome = Literal["created", "updated", "skipped"]


class BookmarkMaterializer:
    """Turn one bookmark into one note file.

    An existing note is left alone so local edits survive; with
    ``SyncOptions.force`` it is rebuilt and overwritten instead.
    Filesystem errors other than "folder exists" propagate to the caller.
    """

    def __init__(
        self,
        vault: VaultStorage,
        fetcher: ContentFetcherProtocol,
        *,
        clock: Callable[[], str] = utc_now_iso,
        correlation_id: str | None = None,
    ) -> None:
        self.vault = vault
        self.fetcher = fetcher
        self.clock = clock
        self.correlation_id = correlation_id
        self._localizers: dict[str, ImageLocalizer] = {}

    def _localizer(self, image_folder: str) -> ImageLocalizer:
        localizer = self._localizers.get(image_folder)
        if localizer is None:
            localizer = ImageLocalizer(
                self.vault, self.fetcher, image_folder, correlation_id=self.correlation_id
            )
            self._localizers[image_folder] = localizer
        return localizer

    async def materialize(
        self, bookmark: PinboxBookmark, options: SyncOptions
    ) -> MaterializeOutcome:
        path = note_path(bookmark, options.sync_folder)
        exists = await self.vault.exists(path)
        if exists and not options.force:
            logger.debug(
                "bookmark_skipped_existing_note",
                extra=log_extra(correlation_id=self.correlation_id, bookmark_id=bookmark.id, path=path),
            )
            return "skipped"

        content = await self.fetcher.fetch_markdown(bookmark.url) if bookmark.url else None
        body = build_note(bookmark, content, self.clock())

        if options.download_images:
            body = await self._localizer(options.image_folder).localize(body, bookmark.id)

        await self.vault.write_note(path, body, overwrite=exists)
        outcome: MaterializeOutcome = "updated" if exists else "created"
        logger.info(
            "bookmark_materialized",
            extra=log_extra(
                correlation_id=self.correlation_id,
                bookmark_id=bookmark.id,
                path=path,
                outcome=outcome,
                content_fetched=content is not None,
            ),
        )
        return outcome
