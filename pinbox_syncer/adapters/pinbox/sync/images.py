"""Download images referenced by a note and embed the local copies."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pinbox_syncer.adapters.vault import ensure_folder
from pinbox_syncer.core.logging_utils import log_extra
from pinbox_syncer.core.time_utils import epoch_millis
from pinbox_syncer.core.url_utils import infer_image_extension, is_http_url, join_path

if TYPE_CHECKING:
    from collections.abc import Callable

    from pinbox_syncer.adapters.pinbox.sync.protocols import ContentFetcherProtocol
    from pinbox_syncer.adapters.vault.protocols import VaultStorage

logger = logging.getLogger(__name__)

MARKDOWN_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")


def image_folder_for(image_folder: str, bookmark_id: int) -> str:
    """Per-bookmark subfolder; removing it removes all of that bookmark's images."""
    return join_path(image_folder, str(bookmark_id))


class ImageLocalizer:
    """Rewrite ``![alt](http...)`` references to ``![[<file>]]`` embeds of downloaded copies.

    Files are named ``<epoch millis>.<ext>``. Within one localizer the
    timestamps strictly increase so two images never share a name.
    A failed download keeps the original remote reference.
    """

    def __init__(
        self,
        vault: VaultStorage,
        fetcher: ContentFetcherProtocol,
        image_folder: str,
        *,
        clock: Callable[[], int] = epoch_millis,
        correlation_id: str | None = None,
    ) -> None:
        self.vault = vault
        self.fetcher = fetcher
        self.image_folder = image_folder
        self.clock = clock
        self.correlation_id = correlation_id
        self._last_stamp = 0

    def _next_stamp(self) -> int:
        stamp = max(self.clock(), self._last_stamp + 1)
        self._last_stamp = stamp
        return stamp

    async def _localize_one(self, url: str, folder: str) -> str | None:
        file_name = f"{self._next_stamp()}.{infer_image_extension(url)}"
        path = join_path(folder, file_name)
        if await self.vault.exists(path):
            logger.debug("image_already_present", extra=log_extra(path=path))
            return file_name

        data = await self.fetcher.download(url)
        if data is None:
            return None
        await self.vault.write_binary(path, data)
        logger.debug(
            "image_saved",
            extra=log_extra(correlation_id=self.correlation_id, path=path, bytes=len(data)),
        )
        return file_name

    async def localize(self, markdown: str, bookmark_id: int) -> str:
        matches = [m for m in MARKDOWN_IMAGE_RE.finditer(markdown) if is_http_url(m.group(2))]
        if not matches:
            return markdown

        folder = image_folder_for(self.image_folder, bookmark_id)
        await ensure_folder(self.vault, folder)

        # Same URL twice in one note is downloaded once
        local_names: dict[str, str | None] = {}
        pieces: list[str] = []
        cursor = 0
        for match in matches:
            url = match.group(2)
            if url not in local_names:
                local_names[url] = await self._localize_one(url, folder)
            file_name = local_names[url]

            pieces.append(markdown[cursor : match.start()])
            pieces.append(f"![[{file_name}]]" if file_name else match.group(0))
            cursor = match.end()
        pieces.append(markdown[cursor:])

        localized = sum(1 for name in local_names.values() if name)
        logger.info(
            "images_localized",
            extra=log_extra(
                correlation_id=self.correlation_id,
                bookmark_id=bookmark_id,
                found=len(matches),
                localized=localized,
            ),
        )
        return "".join(pieces)
