"""Pytest configuration and shared fixtures.

This module provides fakes for the Pinbox API and for third-party web pages,
both served through ``httpx.MockTransport``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from typing import Any

import httpx
import jwt
import pytest

from pinbox_syncer.adapters.vault import InMemoryVault
from pinbox_syncer.config.content import ContentFetchConfig
from pinbox_syncer.config.integrations import PinboxConfig
from pinbox_syncer.config.settings import AppConfig, RuntimeConfig, SyncOptions
from pinbox_syncer.config.vault import VaultConfig

TEST_USER_ID = "user-123"

_ITEMS_PATH = re.compile(r"^/api/user/(?P<uid>[^/]+)/collection/(?P<cid>\d+)/item$")
_COLLECTIONS_PATH = re.compile(r"^/api/user/(?P<uid>[^/]+)/collection$")
_STORE_PATH = re.compile(r"^/api/user/(?P<uid>[^/]+)/store$")
_TOKEN_SIGNING_KEY = "pinbox-test-signing-key-0123456789abcdef"


def make_token(aud: Any = TEST_USER_ID, **claims: Any) -> str:
    """HS256 token signed with a throwaway key; only the payload matters to the client."""
    payload = dict(claims)
    if aud is not None:
        payload["aud"] = aud
    return jwt.encode(payload, _TOKEN_SIGNING_KEY, algorithm="HS256")


def make_bookmark(bookmark_id: int, **fields: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": bookmark_id,
        "title": f"Bookmark {bookmark_id}",
        "url": f"https://example.com/{bookmark_id}",
        "description": "",
        "tags": [],
        "created_at": "2024-01-01",
        "item_type": "web",
    }
    data.update(fields)
    return data


class FakePinboxAPI:
    """In-process stand-in for the Pinbox REST API.

    ``items`` maps collection id to that collection's bookmarks; collection 0
    is served but never listed. ``failing`` collections answer HTTP 500.
    """

    def __init__(
        self,
        items: dict[int, list[dict[str, Any]]] | None = None,
        *,
        failing: set[int] | None = None,
        delete_statuses: list[int] | None = None,
    ) -> None:
        self.items = items or {0: []}
        self.items.setdefault(0, [])
        self.failing = failing or set()
        self.delete_statuses = list(delete_statuses or [200])
        self.requests: list[httpx.Request] = []

    def item_requests(self, collection_id: int) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if (m := _ITEMS_PATH.match(r.url.path)) and int(m.group("cid")) == collection_id
        ]

    def delete_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "DELETE"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if _COLLECTIONS_PATH.match(path):
            listed = [
                {"id": cid, "parent_id": None, "name": f"Collection {cid}", "items_count": len(items)}
                for cid, items in self.items.items()
                if cid != 0
            ]
            return httpx.Response(200, json=listed)

        if match := _ITEMS_PATH.match(path):
            cid = int(match.group("cid"))
            if cid in self.failing:
                return httpx.Response(500, text="boom")
            items = self.items.get(cid, [])
            offset = int(request.url.params.get("offset", "0"))
            count = int(request.url.params.get("count", "50"))
            return httpx.Response(
                200,
                json={"items": items[offset : offset + count], "items_count": len(items)},
            )

        if request.method == "DELETE" and _STORE_PATH.match(path):
            statuses = self.delete_statuses
            status = statuses.pop(0) if len(statuses) > 1 else statuses[0]
            return httpx.Response(status)

        return httpx.Response(404)


class FakeWeb:
    """Serves canned responses per URL; a list is consumed in order, the last one repeats.

    An exception instance in the list is raised instead of answering.
    """

    def __init__(self, pages: dict[str, httpx.Response | list[httpx.Response]] | None = None) -> None:
        self.pages: dict[str, list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        for url, response in (pages or {}).items():
            self.add(url, response)

    @staticmethod
    def _key(url: str | httpx.URL) -> str:
        parsed = httpx.URL(str(url))
        query = parsed.query.decode("ascii")
        return f"{parsed.scheme}://{parsed.host}{parsed.path or '/'}" + (f"?{query}" if query else "")

    def add(self, url: str, response: httpx.Response | list[httpx.Response]) -> None:
        self.pages[self._key(url)] = list(response) if isinstance(response, list) else [response]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.pages.get(self._key(request.url))
        if not queue:
            return httpx.Response(404)
        template = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(template, Exception):
            raise template
        return httpx.Response(template.status_code, headers=template.headers, content=template.content)


def html_page(body: str) -> httpx.Response:
    return httpx.Response(
        200,
        text=f"<html><head><title>t</title></head><body>{body}</body></html>",
        headers={"content-type": "text/html; charset=utf-8"},
    )


class SleepRecorder:
    """Async ``sleep`` replacement that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def vault() -> InMemoryVault:
    return InMemoryVault()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def token() -> str:
    return make_token()


@pytest.fixture
def app_config(token: str) -> AppConfig:
    return AppConfig(
        pinbox=PinboxConfig(access_token=token),
        vault=VaultConfig(),
        content=ContentFetchConfig(),
        runtime=RuntimeConfig(),
    )


@pytest.fixture
def sync_options() -> SyncOptions:
    return SyncOptions(sync_folder="Pinbox", image_folder="Pinbox/.pics")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> Callable[..., None]:
    """Clear configuration variables and run from an empty directory (no stray ``.env``)."""
    prefixes = ("PINBOX_", "VAULT_", "CONTENT_FETCH_", "LOG_")
    for name in list(os.environ):
        if name.startswith(prefixes):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    def _set(**values: str) -> None:
        for key, value in values.items():
            monkeypatch.setenv(key, value)

    return _set


class StubFetcher:
    """``ContentFetcherProtocol`` double: canned Markdown per URL and canned image bytes."""

    def __init__(
        self,
        pages: dict[str, str | None] | None = None,
        images: dict[str, bytes] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.images = images or {}
        self.fetched: list[str] = []
        self.downloaded: list[str] = []

    async def __aenter__(self) -> StubFetcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        return None

    async def fetch_markdown(self, url: str) -> str | None:
        self.fetched.append(url)
        return self.pages.get(url)

    async def download(self, url: str) -> bytes | None:
        self.downloaded.append(url)
        return self.images.get(url)
