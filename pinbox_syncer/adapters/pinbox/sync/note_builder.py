"""Build the Markdown note written for one bookmark."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pinbox_syncer.core.text_utils import MAX_FILENAME_LENGTH, sanitize_filename, yaml_quote
from pinbox_syncer.core.url_utils import join_path

if TYPE_CHECKING:
    from pinbox_syncer.adapters.pinbox.models import PinboxBookmark

NOTE_SECTION_HEADING = "## Note"

CONTENT_UNAVAILABLE_NOTICE = (
    "> ⚠️ The page content could not be fetched automatically. Possible reasons:",
    "> - the page needs JavaScript to render its content",
    "> - the page loaded too slowly",
    "> - the page requires a login or special permissions",
    "> - the link is no longer valid",
    ">",
    "> Open the url in the frontmatter to read the full content.",
)


def note_filename(bookmark: PinboxBookmark) -> str:
    """Sanitized title, or the bookmark id when the title sanitizes to nothing."""
    name = sanitize_filename(bookmark.title or "", MAX_FILENAME_LENGTH)
    return name or str(bookmark.id)


def note_path(bookmark: PinboxBookmark, sync_folder: str) -> str:
    return join_path(sync_folder, f"{note_filename(bookmark)}.md")


def build_frontmatter(bookmark: PinboxBookmark, synced_at: str) -> list[str]:
    lines = [
        "---",
        f"id: {bookmark.id}",
        f"title: {yaml_quote(bookmark.title or 'Untitled')}",
        f"url: {yaml_quote(bookmark.url)}",
        f"item_type: {bookmark.item_type or 'unknown'}",
        f"created_at: {bookmark.created_at}",
    ]
    if bookmark.tags:
        lines.append("tags:")
        lines.extend(f"  - {tag}" for tag in bookmark.tags)
    if bookmark.collection_id is not None:
        lines.append(f"collection_id: {bookmark.collection_id}")
    if bookmark.view is not None:
        lines.append(f"view: {bookmark.view}")
    if bookmark.brief:
        lines.append(f"brief: {yaml_quote(bookmark.brief)}")
    if bookmark.description:
        lines.append(f"description: {yaml_quote(bookmark.description)}")
    if bookmark.image_url:
        lines.append(f"image: {yaml_quote(bookmark.image_url)}")
    lines.append(f"synced_at: {synced_at}")
    lines.append("---")
    return lines


def build_note(bookmark: PinboxBookmark, content: str | None, synced_at: str) -> str:
    """Frontmatter, then the user's note, the cover image and the page content.

    When ``content`` is empty and the bookmark has a URL, a notice replaces it.
    """
    lines = build_frontmatter(bookmark, synced_at)
    lines.append("")

    if bookmark.note:
        lines.extend([NOTE_SECTION_HEADING, "", bookmark.note, ""])

    if bookmark.image_url:
        lines.extend([f"![cover]({bookmark.image_url})", ""])

    if content:
        lines.append(content)
    elif bookmark.url:
        lines.extend(CONTENT_UNAVAILABLE_NOTICE)

    return "\n".join(lines)
