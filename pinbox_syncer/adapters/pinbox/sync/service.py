"""Public Pinbox sync service: one pass over every bookmark, plus deletion."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from pinbox_syncer.adapters.content.content_fetcher import ContentFetcher
from pinbox_syncer.adapters.pinbox.client import PinboxClient
from pinbox_syncer.adapters.pinbox.models import SyncReport
from pinbox_syncer.adapters.pinbox.sync.deletion import BookmarkDeleter
from pinbox_syncer.adapters.pinbox.sync.materializer import BookmarkMaterializer
from pinbox_syncer.adapters.vault import ensure_folder
from pinbox_syncer.config.settings import SyncOptions
from pinbox_syncer.core.logging_utils import generate_correlation_id

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from pinbox_syncer.adapters.pinbox.models import DeletionResult
    from pinbox_syncer.adapters.pinbox.sync.protocols import (
        ContentFetcherFactory,
        ContentFetcherProtocol,
        PinboxClientFactory,
    )
    from pinbox_syncer.adapters.vault.protocols import VaultStorage
    from pinbox_syncer.config.content import ContentFetchConfig
    from pinbox_syncer.config.settings import AppConfig
    from pinbox_syncer.config.state import StateStore

logger = logging.getLogger(__name__)


def _default_fetcher_factory(
    cfg: ContentFetchConfig, correlation_id: str | None
) -> AbstractAsyncContextManager[ContentFetcherProtocol]:
    return ContentFetcher(cfg, correlation_id=correlation_id)


class PinboxSyncService:
    """Sequential sync orchestrator.

    Bookmarks are processed one at a time in the order the API returns them.
    Any unhandled error aborts the pass and propagates; notes written before
    the error stay in place.
    """

    def __init__(
        self,
        cfg: AppConfig,
        vault: VaultStorage,
        *,
        state_store: StateStore | None = None,
        client_factory: PinboxClientFactory | None = None,
        fetcher_factory: ContentFetcherFactory | None = None,
    ) -> None:
        self.cfg = cfg
        self.vault = vault
        self.state_store = state_store
        self._client_factory = client_factory or PinboxClient.from_config
        self._fetcher_factory = fetcher_factory or _default_fetcher_factory
        self.last_report: SyncReport | None = None

    async def current_options(self, *, force: bool = False) -> SyncOptions:
        """Snapshot the settings for one operation."""
        state = await self.state_store.load() if self.state_store is not None else None
        return SyncOptions.from_config(self.cfg, state=state, force=force)

    async def run_sync(self, options: SyncOptions | None = None) -> int:
        """Run one pass and return the number of bookmarks processed."""
        options = options or await self.current_options()
        correlation_id = generate_correlation_id()
        started = time.monotonic()
        report = SyncReport(correlation_id=correlation_id)

        logger.info(
            "pinbox_sync_started",
            extra={
                "correlation_id": correlation_id,
                "sync_folder": options.sync_folder,
                "download_images": options.download_images,
                "force": options.force,
            },
        )
        try:
            await ensure_folder(self.vault, options.sync_folder)

            async with self._client_factory(self.cfg.pinbox) as client:
                bookmarks = await client.get_all_bookmarks()

            if bookmarks:
                async with self._fetcher_factory(self.cfg.content, correlation_id) as fetcher:
                    materializer = BookmarkMaterializer(
                        self.vault, fetcher, correlation_id=correlation_id
                    )
                    for index, bookmark in enumerate(bookmarks, start=1):
                        logger.debug(
                            "pinbox_bookmark_processing",
                            extra={
                                "correlation_id": correlation_id,
                                "bookmark_id": bookmark.id,
                                "position": index,
                                "total": len(bookmarks),
                            },
                        )
                        outcome = await materializer.materialize(bookmark, options)
                        report.total += 1
                        if outcome == "created":
                            report.created += 1
                        elif outcome == "updated":
                            report.updated += 1
                        else:
                            report.skipped += 1
        except Exception as exc:
            logger.exception(
                "pinbox_sync_failed",
                extra={
                    "correlation_id": correlation_id,
                    "processed": report.total,
                    "error": str(exc),
                },
            )
            raise

        report.duration_seconds = time.monotonic() - started
        self.last_report = report
        logger.info(
            "pinbox_sync_complete",
            extra={
                "correlation_id": correlation_id,
                "total": report.total,
                "created": report.created,
                "updated": report.updated,
                "skipped": report.skipped,
                "duration_seconds": round(report.duration_seconds, 2),
            },
        )

        if self.state_store is not None:
            state = await self.state_store.load()
            state.mark_synced()
            await self.state_store.save(state)

        return report.total

    async def delete_bookmark(
        self, note_path: str, options: SyncOptions | None = None
    ) -> DeletionResult:
        """Delete the bookmark behind ``note_path`` remotely, then locally."""
        options = options or await self.current_options()
        correlation_id = generate_correlation_id()
        async with self._client_factory(self.cfg.pinbox) as client:
            deleter = BookmarkDeleter(self.vault, client, correlation_id=correlation_id)
            return await deleter.delete(note_path, options)

    async def test_connection(self) -> bool:
        async with self._client_factory(self.cfg.pinbox) as client:
            return await client.test_connection()
