"""Deterministic HTML -> Markdown conversion for fetched article pages."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup
from markdownify import ASTERISK, ATX, MarkdownConverter

logger = logging.getLogger(__name__)

# Removed from the DOM before conversion, content included. html.parser builds no
# <body> for pages that omit it, so head elements are dropped here as well.
STRIPPED_TAGS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "iframe",
    "head",
    "title",
    "meta",
    "link",
)

# Recurring page-template footers. The cut lands at the earliest hit in the text,
# not at the first marker of this tuple that matches.
FOOTER_MARKERS: tuple[str, ...] = (
    "预览时标签不可点",
    "微信扫一扫",
    "关注该公众号",
    "Scan QR Code",
)

_BLANK_LINE_RE = re.compile(r"\n{3,}")
_MULTI_SPACE_RE = re.compile(r" {2,}")
_LOOSE_LIST_ITEM_RE = re.compile(
    r"^([-*]|\d+\.)\s+(.+?)\n\n(?=(?:[-*]|\d+\.)\s+)",
    re.MULTILINE,
)


class ArticleMarkdownConverter(MarkdownConverter):
    """markdownify converter with the article rules used for vault notes."""

    def __init__(self, **options) -> None:
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("strong_em_symbol", ASTERISK)
        super().__init__(**options)

    def convert_img(self, el, text, parent_tags=None):
        src = el.get("src") or el.get("data-src") or el.get("data-original") or ""
        if not src:
            return ""
        alt = el.get("alt") or "image"
        return f"![{alt}]({src})"

    def convert_mark(self, el, text, parent_tags=None):
        return f"=={text}==" if text else ""

    def convert_del(self, el, text, parent_tags=None):
        return f"~~{text}~~" if text else ""

    convert_s = convert_del
    convert_strike = convert_del

    def convert_hr(self, el, text, parent_tags=None):
        return "\n\n---\n\n"

    # Dropped together with their content
    def _drop(self, el, text, parent_tags=None):
        return ""

    convert_script = _drop
    convert_style = _drop
    convert_button = _drop
    convert_nav = _drop
    convert_footer = _drop


def _resolve_lazy_images(soup: BeautifulSoup) -> None:
    for img in soup.find_all("img"):
        if not img.get("src"):
            lazy_src = img.get("data-src") or img.get("data-original")
            if lazy_src:
                img["src"] = lazy_src
        if not img.get("alt"):
            img["alt"] = img.get("title") or "image"


def truncate_at_footer(markdown: str, markers: tuple[str, ...] = FOOTER_MARKERS) -> str:
    """Cut ``markdown`` at the earliest occurrence of any footer marker."""
    positions = [idx for idx in (markdown.find(marker) for marker in markers) if idx != -1]
    if not positions:
        return markdown
    return markdown[: min(positions)]


def normalize_markdown_whitespace(markdown: str) -> str:
    """Tidy converter output.

    - trailing whitespace stripped from every line
    - list items separated by one blank line become a tight list
    - runs of two or more spaces collapse to one
    - three or more newlines collapse to one blank line
    - leading and trailing blank lines removed
    """
    text = "\n".join(line.rstrip() for line in markdown.split("\n"))
    text = _LOOSE_LIST_ITEM_RE.sub(r"\1 \2\n", text)
    text = _MULTI_SPACE_RE.sub(" ", text)
    text = _BLANK_LINE_RE.sub("\n\n", text)
    return text.strip()


def html_to_markdown(html: str) -> str:
    """Convert a raw HTML page to clean Markdown.

    Never raises: any parsing or conversion failure yields an empty string.
    Identical input always produces identical output.
    """
    if not html:
        return ""
    try:
        soup = BeautifulSoup(html, "html.parser")

        for tag in soup.find_all(list(STRIPPED_TAGS)):
            tag.decompose()

        _resolve_lazy_images(soup)

        root = soup.body or soup
        markdown = ArticleMarkdownConverter().convert_soup(root)
        markdown = truncate_at_footer(markdown)
        return normalize_markdown_whitespace(markdown)
    except Exception:
        logger.exception("html_to_markdown_failed", extra={"html_length": len(html)})
        return ""


def visible_text_length(markdown: str) -> int:
    """Number of non-whitespace characters in ``markdown``."""
    return len(re.sub(r"\s+", "", markdown))
