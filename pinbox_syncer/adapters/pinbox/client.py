"""Pinbox API client."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

import httpx

from pinbox_syncer.adapters.pinbox.auth import derive_user_id
from pinbox_syncer.adapters.pinbox.models import (
    DEFAULT_COLLECTION_ID,
    CollectionPage,
    PinboxBookmark,
    PinboxCollection,
)
from pinbox_syncer.config.integrations import DEFAULT_PINBOX_BASE_URL
from pinbox_syncer.core.logging_utils import mask_secret
from pinbox_syncer.domain.exceptions import RemoteAPIError
from pinbox_syncer.utils.retry_utils import REMOTE_DELETE_POLICY

if TYPE_CHECKING:
    from typing import Self

    from pinbox_syncer.config.integrations import PinboxConfig
    from pinbox_syncer.utils.retry_utils import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DELETE_SUCCESS_STATUSES = frozenset({200, 204})


class PinboxClient:
    """Async HTTP client for the Pinbox bookmark API.

    Endpoint paths embed the user id, which is derived lazily from the access
    token on first use and cached for the lifetime of the client.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_PINBOX_BASE_URL,
        timeout: float = 30.0,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        delete_policy: RetryPolicy = REMOTE_DELETE_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Pinbox client.

        Args:
            access_token: Bearer token (a JWT whose ``aud`` claim is the user id)
            base_url: Service origin, without trailing slash
            timeout: Request timeout in seconds
            page_size: Items requested per page when paginating a collection
            delete_policy: Retry policy applied to item deletion
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        """
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self.delete_policy = delete_policy
        self._transport = transport
        self._user_id: str | None = None
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls, cfg: PinboxConfig, **kwargs: Any) -> Self:
        return cls(
            cfg.access_token,
            base_url=cfg.base_url,
            timeout=float(cfg.timeout_sec),
            page_size=cfg.page_size,
            **kwargs,
        )

    async def __aenter__(self) -> Self:
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json, text/plain, */*",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.debug(
            "pinbox_client_opened",
            extra={"base_url": self.base_url, "token": mask_secret(self.access_token)},
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self._client

    @property
    def user_id(self) -> str:
        """User id from the token; raises ``AuthError`` when it cannot be derived."""
        if self._user_id is None:
            self._user_id = derive_user_id(self.access_token)
        return self._user_id

    @staticmethod
    def _check_ok(response: httpx.Response, operation: str) -> None:
        if response.status_code != 200:
            raise RemoteAPIError(
                f"{operation} failed with HTTP {response.status_code}",
                response.status_code,
                {"operation": operation, "url": str(response.request.url)},
            )

    async def get_collections(self) -> list[PinboxCollection]:
        """List the user's collections. The implicit default collection is not included."""
        response = await self.client.get(
            f"/api/user/{self.user_id}/collection",
            params={"order": "default", "sort": "asc"},
        )
        self._check_ok(response, "get_collections")
        data = response.json()
        collections = [PinboxCollection.model_validate(c) for c in data] if isinstance(data, list) else []
        logger.debug("pinbox_collections_fetched", extra={"count": len(collections)})
        return collections

    async def get_collection_items(
        self,
        collection_id: int,
        count: int | None = None,
        offset: int = 0,
    ) -> CollectionPage:
        """Fetch one page of a collection's items.

        Args:
            collection_id: Collection id (0 for the default collection)
            count: Page size; defaults to the client's page size
            offset: Index of the first item

        Returns:
            The page's items and the collection's total item count
        """
        page_size = count if count is not None else self.page_size
        response = await self.client.get(
            f"/api/user/{self.user_id}/collection/{collection_id}/item",
            params={
                "count": page_size,
                "offset": offset,
                "category": "all",
                "order": "create",
                "sort": "desc",
            },
        )
        self._check_ok(response, f"get_collection_items({collection_id})")
        data = response.json()
        page = CollectionPage.model_validate(data if isinstance(data, dict) else {})
        logger.debug(
            "pinbox_collection_page_fetched",
            extra={
                "collection_id": collection_id,
                "offset": offset,
                "items": len(page.items),
                "total": page.total,
            },
        )
        return page

    async def get_all_collection_items(self, collection_id: int) -> list[PinboxBookmark]:
        """Fetch every item of one collection, page by page.

        The first page reports the total; later pages are requested at
        ``offset += page_size`` until the offset reaches that total. A total
        that changes mid-pagination is not reconciled.
        """
        first_page = await self.get_collection_items(collection_id, self.page_size, 0)
        items = list(first_page.items)
        total = first_page.total

        offset = self.page_size
        while offset < total:
            page = await self.get_collection_items(collection_id, self.page_size, offset)
            items.extend(page.items)
            offset += self.page_size

        logger.info(
            "pinbox_collection_items_fetched",
            extra={
                "collection_id": collection_id,
                "count": len(items),
                "total": total,
                "pages": max(1, math.ceil(total / self.page_size)),
            },
        )
        return items

    async def get_all_bookmarks(self) -> list[PinboxBookmark]:
        """Fetch all bookmarks: the default collection, then every listed collection.

        A failure while fetching one listed collection is logged and that
        collection is skipped; failures listing collections or fetching the
        default collection propagate.
        """
        collections = await self.get_collections()
        bookmarks = await self.get_all_collection_items(DEFAULT_COLLECTION_ID)

        failed: list[int] = []
        for collection in collections:
            try:
                items = await self.get_all_collection_items(collection.id)
            except (RemoteAPIError, httpx.HTTPError, ValueError) as exc:
                failed.append(collection.id)
                logger.warning(
                    "pinbox_collection_fetch_failed",
                    extra={
                        "collection_id": collection.id,
                        "collection_name": collection.name,
                        "error": str(exc),
                    },
                )
                continue
            bookmarks.extend(items)

        logger.info(
            "pinbox_fetched_all_bookmarks",
            extra={
                "count": len(bookmarks),
                "collections": len(collections) + 1,
                "failed_collections": failed,
            },
        )
        return bookmarks

    async def delete_item(self, item_id: int) -> None:
        """Delete one bookmark.

        Retried per ``delete_policy``; 200 and 204 count as success.

        Raises:
            RemoteAPIError: On a non-retryable status
            RetryExhaustedError: When retryable failures used up the budget
        """
        user_id = self.user_id

        async def _delete() -> None:
            response = await self.client.delete(
                f"/api/user/{user_id}/store",
                params={"storeIds[]": item_id},
                headers={"X-Requested-With": "XMLHttpRequest"},
            )
            if response.status_code not in DELETE_SUCCESS_STATUSES:
                raise RemoteAPIError(
                    f"delete_item({item_id}) failed with HTTP {response.status_code}",
                    response.status_code,
                    {"item_id": item_id, "body": response.text[:200]},
                )

        await self.delete_policy.run(_delete, operation_name=f"delete_item({item_id})")
        logger.info("pinbox_item_deleted", extra={"item_id": item_id})

    async def test_connection(self) -> bool:
        """Check the token and the API by listing collections."""
        try:
            collections = await self.get_collections()
        except Exception as exc:
            logger.warning("pinbox_connection_test_failed", extra={"error": str(exc)})
            return False
        logger.info("pinbox_connection_ok", extra={"collections": len(collections)})
        return True
