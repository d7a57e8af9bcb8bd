from __future__ import annotations

from dataclasses import replace

from pinbox_syncer.adapters.pinbox.models import PinboxBookmark
from pinbox_syncer.adapters.pinbox.sync.materializer import BookmarkMaterializer
from tests.conftest import StubFetcher, make_bookmark


def _bookmark(**fields) -> PinboxBookmark:
    return PinboxBookmark.model_validate(
        make_bookmark(42, title="Example Site", url="https://example.com", **fields)
    )


async def _prepare(vault):
    await vault.create_folder("Pinbox")


async def test_creates_note_with_fetched_content(vault, sync_options):
    await _prepare(vault)
    fetcher = StubFetcher(pages={"https://example.com": "# Hello\n\nWorld"})
    materializer = BookmarkMaterializer(vault, fetcher, clock=lambda: "2024-05-01T00:00:00.000Z")

    outcome = await materializer.materialize(_bookmark(), sync_options)

    assert outcome == "created"
    note = vault.files["Pinbox/Example Site.md"]
    assert "id: 42" in note
    assert "synced_at: 2024-05-01T00:00:00.000Z" in note
    assert note.endswith("# Hello\n\nWorld")


async def test_existing_note_skipped_without_fetch(vault, sync_options):
    await _prepare(vault)
    await vault.write_note("Pinbox/Example Site.md", "my edits")
    fetcher = StubFetcher(pages={"https://example.com": "fresh"})

    outcome = await BookmarkMaterializer(vault, fetcher).materialize(_bookmark(), sync_options)

    assert outcome == "skipped"
    assert vault.files["Pinbox/Example Site.md"] == "my edits"
    assert fetcher.fetched == []


async def test_force_overwrites_existing_note(vault, sync_options):
    await _prepare(vault)
    await vault.write_note("Pinbox/Example Site.md", "stale")
    fetcher = StubFetcher(pages={"https://example.com": "fresh"})

    outcome = await BookmarkMaterializer(vault, fetcher).materialize(
        _bookmark(), replace(sync_options, force=True)
    )

    assert outcome == "updated"
    assert vault.files["Pinbox/Example Site.md"].endswith("fresh")


async def test_unavailable_content_writes_notice(vault, sync_options):
    await _prepare(vault)
    fetcher = StubFetcher()

    await BookmarkMaterializer(vault, fetcher).materialize(_bookmark(), sync_options)

    assert "could not be fetched automatically" in vault.files["Pinbox/Example Site.md"]


async def test_bookmark_without_url_is_not_fetched(vault, sync_options):
    await _prepare(vault)
    fetcher = StubFetcher()
    bookmark = PinboxBookmark.model_validate(make_bookmark(7, title="Plain", url=""))

    outcome = await BookmarkMaterializer(vault, fetcher).materialize(bookmark, sync_options)

    assert outcome == "created"
    assert fetcher.fetched == []


async def test_images_localized_when_enabled(vault, sync_options):
    await _prepare(vault)
    fetcher = StubFetcher(
        pages={"https://example.com": "Text\n\n![pic](https://img.example.com/p.png)"},
        images={"https://img.example.com/p.png": b"PNG"},
    )
    options = replace(sync_options, download_images=True)

    await BookmarkMaterializer(vault, fetcher).materialize(_bookmark(), options)

    note = vault.files["Pinbox/Example Site.md"]
    assert "https://img.example.com/p.png" not in note
    assert "![[" in note
    saved = [path for path in vault.files if path.startswith("Pinbox/.pics/42/")]
    assert len(saved) == 1
    assert saved[0].endswith(".png")


async def test_images_left_remote_when_disabled(vault, sync_options):
    await _prepare(vault)
    fetcher = StubFetcher(pages={"https://example.com": "![pic](https://img.example.com/p.png)"})

    await BookmarkMaterializer(vault, fetcher).materialize(_bookmark(), sync_options)

    assert "![pic](https://img.example.com/p.png)" in vault.files["Pinbox/Example Site.md"]
    assert fetcher.downloaded == []
