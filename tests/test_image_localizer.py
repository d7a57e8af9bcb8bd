from __future__ import annotations

from pinbox_syncer.adapters.pinbox.sync.images import ImageLocalizer, image_folder_for
from tests.conftest import StubFetcher


def _clock(values):
    stamps = iter(values)
    return lambda: next(stamps)


async def test_images_downloaded_and_embedded(vault):
    fetcher = StubFetcher(
        images={
            "https://img.example.com/a.png": b"A",
            "https://mmbiz.qpic.cn/b/640?wx_fmt=gif": b"B",
        }
    )
    localizer = ImageLocalizer(vault, fetcher, "Pinbox/.pics", clock=_clock([1000, 1000]))
    markdown = (
        "Intro\n\n![one](https://img.example.com/a.png)\n\n"
        "![](https://mmbiz.qpic.cn/b/640?wx_fmt=gif)"
    )

    result = await localizer.localize(markdown, 42)

    assert result == "Intro\n\n![[1000.png]]\n\n![[1001.gif]]"
    assert vault.files["Pinbox/.pics/42/1000.png"] == b"A"
    assert vault.files["Pinbox/.pics/42/1001.gif"] == b"B"


async def test_failed_download_keeps_remote_reference(vault):
    fetcher = StubFetcher(images={"https://img.example.com/ok.jpg": b"ok"})
    localizer = ImageLocalizer(vault, fetcher, "Pinbox/.pics", clock=_clock([5, 6]))
    markdown = "![a](https://img.example.com/missing.jpg) ![b](https://img.example.com/ok.jpg)"

    result = await localizer.localize(markdown, 7)

    assert result == "![a](https://img.example.com/missing.jpg) ![[6.jpg]]"


async def test_duplicate_url_downloaded_once(vault):
    url = "https://img.example.com/a.png"
    fetcher = StubFetcher(images={url: b"A"})
    localizer = ImageLocalizer(vault, fetcher, "Pinbox/.pics", clock=_clock([10]))

    result = await localizer.localize(f"![x]({url}) and ![y]({url})", 1)

    assert result == "![[10.png]] and ![[10.png]]"
    assert fetcher.downloaded == [url]


async def test_non_http_references_untouched(vault):
    fetcher = StubFetcher()
    localizer = ImageLocalizer(vault, fetcher, "Pinbox/.pics")
    markdown = "![local](attachments/pic.png) ![data](data:image/png;base64,AAA)"

    assert await localizer.localize(markdown, 1) == markdown
    assert fetcher.downloaded == []
    assert "Pinbox/.pics/1" not in vault.folders


def test_image_folder_is_per_bookmark():
    assert image_folder_for("Pinbox/.pics/", 42) == "Pinbox/.pics/42"
