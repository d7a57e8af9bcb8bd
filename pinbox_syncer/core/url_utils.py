from __future__ import annotations

import logging
import posixpath
import re
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    ["jpg", "jpeg", "png", "gif", "webp", "bmp", "svg", "ico"]
)
DEFAULT_IMAGE_EXTENSION = "jpg"

# Checked in order; ``tp`` carries the real format when ``wx_fmt=other``
IMAGE_FORMAT_QUERY_PARAMS: tuple[str, ...] = ("wx_fmt", "tp", "fmt", "format")


class SiteRule(BaseModel):
    """Per-site fetch quirks keyed by hostname."""

    model_config = ConfigDict(frozen=True)

    host: str
    upgrade_to_https: bool = False
    extra_headers: dict[str, str] = Field(default_factory=dict)
    error_phrases: tuple[str, ...] = ()

    def matches(self, url: str) -> bool:
        hostname = (urlparse(url).hostname or "").lower()
        host = self.host.lower()
        return hostname == host or hostname.endswith("." + host)


WECHAT_ARTICLE_RULE = SiteRule(
    host="mp.weixin.qq.com",
    upgrade_to_https=True,
    extra_headers={
        "Referer": "https://mp.weixin.qq.com/",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Upgrade-Insecure-Requests": "1",
    },
    error_phrases=(
        "该内容已被发布者删除",
        "链接已过期",
        "此内容因违规无法查看",
    ),
)

DEFAULT_SITE_RULES: tuple[SiteRule, ...] = (WECHAT_ARTICLE_RULE,)


def find_site_rule(url: str, rules: tuple[SiteRule, ...] | list[SiteRule]) -> SiteRule | None:
    """Return the first rule whose host matches ``url``."""
    for rule in rules:
        if rule.matches(url):
            return rule
    return None


def apply_scheme_upgrade(url: str, rule: SiteRule | None) -> str:
    """Rewrite ``http://`` to ``https://`` when the matching rule asks for it."""
    if rule is None or not rule.upgrade_to_https:
        return url
    if url.lower().startswith("http://"):
        upgraded = "https://" + url[len("http://") :]
        logger.debug("url_upgraded_to_https", extra={"url": upgraded, "host": rule.host})
        return upgraded
    return url


def is_http_url(url: str) -> bool:
    """True for absolute ``http``/``https`` URLs."""
    if not url or not isinstance(url, str):
        return False
    return url.startswith(("http://", "https://"))


def infer_image_extension(url: str) -> str:
    """Guess an image file extension from a URL.

    Looks at known lazy-format query parameters first, then at the file name in
    the path. Anything outside ``IMAGE_EXTENSIONS`` falls back to ``jpg``.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        logger.debug("image_url_parse_failed", extra={"url": url})
        return DEFAULT_IMAGE_EXTENSION

    query = parse_qs(parsed.query)
    for param in IMAGE_FORMAT_QUERY_PARAMS:
        values = query.get(param)
        if not values:
            continue
        candidate = values[0].strip().lower()
        if candidate in IMAGE_EXTENSIONS:
            return candidate

    file_name = posixpath.basename(parsed.path)
    if "." in file_name:
        candidate = file_name.rsplit(".", 1)[1].lower()
        if candidate in IMAGE_EXTENSIONS:
            return candidate

    return DEFAULT_IMAGE_EXTENSION


_PATH_SEPARATORS = re.compile(r"[\\/]+")


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path: forward slashes, no empty or edge separators."""
    if not path:
        return ""
    cleaned = _PATH_SEPARATORS.sub("/", path.replace("\u00a0", " "))
    return cleaned.strip("/")


def join_path(*parts: str) -> str:
    return normalize_path("/".join(part for part in parts if part))
