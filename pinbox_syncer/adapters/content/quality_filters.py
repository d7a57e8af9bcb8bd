"""Checks that decide whether a fetched page carries real article content."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pinbox_syncer.core.html_utils import visible_text_length

if TYPE_CHECKING:
    from pinbox_syncer.core.url_utils import SiteRule

# Client-rendered pages often ship only one of these before their scripts run
LOADING_INDICATORS: tuple[str, ...] = (
    "loading...",
    "loading",
    "加载中...",
    "加载中",
    "请稍候...",
    "正在加载",
    "load more",
    "skeleton",
)


def is_empty_body(html: str | None) -> bool:
    return not html or not html.strip()


def find_error_phrase(html: str, rule: SiteRule | None) -> str | None:
    """Return the first site-specific "content removed" phrase present in ``html``."""
    if rule is None:
        return None
    for phrase in rule.error_phrases:
        if phrase in html:
            return phrase
    return None


def is_loading_placeholder(markdown: str, min_chars: int = 100) -> bool:
    """True when ``markdown`` is short and contains a loading indicator.

    Short pages without an indicator are legitimate and are not flagged.
    """
    if visible_text_length(markdown) >= min_chars:
        return False
    lowered = markdown.lower().strip()
    return any(indicator in lowered for indicator in LOADING_INDICATORS)
