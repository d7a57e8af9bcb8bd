"""Fetch bookmarked web pages and turn them into Markdown."""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

import httpx

from pinbox_syncer.adapters.content.quality_filters import (
    find_error_phrase,
    is_empty_body,
    is_loading_placeholder,
)
from pinbox_syncer.config.content import ContentFetchConfig
from pinbox_syncer.core.html_utils import html_to_markdown
from pinbox_syncer.core.logging_utils import log_extra, truncate_log_content
from pinbox_syncer.core.url_utils import apply_scheme_upgrade, find_site_rule
from pinbox_syncer.domain.exceptions import (
    ContentUnavailableError,
    RemoteAPIError,
    RetryExhaustedError,
)
from pinbox_syncer.utils.retry_utils import CONTENT_FETCH_POLICY, PlaceholderContentError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Self

    from pinbox_syncer.core.url_utils import SiteRule
    from pinbox_syncer.utils.retry_utils import RetryPolicy

logger = logging.getLogger(__name__)

BASE_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

RETRYABLE_STATUS_CODES = frozenset({408, 429})


class ContentFetcher:
    """Retrieve a page, validate it, and convert it with ``html_to_markdown``.

    ``fetch_markdown`` returns ``None`` instead of raising for every ordinary
    fetch failure; the caller writes a "content unavailable" notice instead.
    """

    def __init__(
        self,
        config: ContentFetchConfig | None = None,
        *,
        policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.config = config or ContentFetchConfig()
        base_policy = policy or dataclasses.replace(
            CONTENT_FETCH_POLICY, max_attempts=self.config.max_attempts
        )
        self.policy = base_policy.with_sleep(sleep) if sleep else base_policy
        self.correlation_id = correlation_id
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            timeout=float(self.config.timeout_sec),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Fetcher not initialized. Use async context manager.")
        return self._client

    @staticmethod
    def build_headers(rule: SiteRule | None) -> dict[str, str]:
        headers = dict(BASE_HEADERS)
        if rule is not None:
            headers.update(rule.extra_headers)
        return headers

    async def fetch_markdown(self, url: str) -> str | None:
        """Return the page at ``url`` as Markdown, or ``None`` if no real content was obtained."""
        rule = find_site_rule(url, self.config.site_rules)
        target = apply_scheme_upgrade(url, rule)
        headers = self.build_headers(rule)

        async def _attempt() -> str:
            response = await self.client.get(target, headers=headers)
            status = response.status_code
            if status != 200:
                if status >= 500 or status in RETRYABLE_STATUS_CODES:
                    raise RemoteAPIError(f"HTTP {status}", status, {"url": target})
                raise ContentUnavailableError(f"HTTP {status}", "http_status", {"status": status})

            html = response.text
            if is_empty_body(html):
                raise ContentUnavailableError("Empty response body", "empty_body")

            phrase = find_error_phrase(html, rule)
            if phrase:
                raise ContentUnavailableError(
                    "Page reports the content is gone", "known_error_page", {"phrase": phrase}
                )

            markdown = html_to_markdown(html)
            if is_loading_placeholder(markdown, self.config.min_content_chars):
                logger.warning(
                    "content_loading_placeholder",
                    extra=log_extra(
                        correlation_id=self.correlation_id,
                        url=target,
                        preview=truncate_log_content(markdown, 120),
                    ),
                )
                raise PlaceholderContentError(markdown)
            return markdown

        try:
            markdown = await self.policy.run(_attempt, operation_name="fetch_content")
        except ContentUnavailableError as exc:
            logger.warning(
                "content_unavailable",
                extra=log_extra(
                    correlation_id=self.correlation_id,
                    url=target,
                    reason=exc.reason,
                    **exc.details,
                ),
            )
            return None
        except RetryExhaustedError as exc:
            logger.error(
                "content_fetch_exhausted",
                extra=log_extra(
                    correlation_id=self.correlation_id,
                    url=target,
                    attempts=exc.attempts,
                    error=str(exc.last_error),
                ),
            )
            return None

        logger.debug(
            "content_fetched",
            extra=log_extra(correlation_id=self.correlation_id, url=target, chars=len(markdown)),
        )
        return markdown

    async def download(self, url: str) -> bytes | None:
        """Download a binary asset (images); ``None`` on any HTTP or network failure."""
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            logger.warning(
                "asset_download_failed",
                extra=log_extra(correlation_id=self.correlation_id, url=url, error=str(exc)),
            )
            return None
        if response.status_code != 200 or not response.content:
            logger.warning(
                "asset_download_failed",
                extra=log_extra(
                    correlation_id=self.correlation_id, url=url, status=response.status_code
                ),
            )
            return None
        return response.content
