"""Protocol definitions (ports) for the Pinbox sync pipeline.

The orchestrator depends on these rather than on the concrete HTTP clients so
tests can hand in fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from pinbox_syncer.adapters.pinbox.models import PinboxBookmark
    from pinbox_syncer.config.content import ContentFetchConfig
    from pinbox_syncer.config.integrations import PinboxConfig


class PinboxClientProtocol(Protocol):
    async def get_all_bookmarks(self) -> list[PinboxBookmark]: ...

    async def delete_item(self, item_id: int) -> None: ...

    async def test_connection(self) -> bool: ...


class PinboxClientFactory(Protocol):
    def __call__(self, cfg: PinboxConfig) -> AbstractAsyncContextManager[PinboxClientProtocol]: ...


class ContentFetcherProtocol(Protocol):
    async def fetch_markdown(self, url: str) -> str | None: ...

    async def download(self, url: str) -> bytes | None: ...


class ContentFetcherFactory(Protocol):
    def __call__(
        self, cfg: ContentFetchConfig, correlation_id: str | None
    ) -> AbstractAsyncContextManager[ContentFetcherProtocol]: ...
