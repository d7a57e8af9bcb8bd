"""Pure text utilities with no I/O."""

from __future__ import annotations

import re

MAX_FILENAME_LENGTH = 200

_INVALID_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')
_WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_filename(name: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """Make ``name`` safe to use as a note filename.

    Replaces ``\\ / : * ? " < > |`` with ``-``, collapses whitespace runs to a
    single space, trims, and caps the length.
    """
    if not isinstance(name, str):
        name = str(name) if name is not None else ""
    cleaned = _INVALID_FILENAME_CHARS.sub("-", name)
    cleaned = _WHITESPACE_RUN.sub(" ", cleaned).strip()
    return cleaned[:max_length]


def yaml_quote(value: str) -> str:
    """Double-quote a single-line frontmatter scalar, escaping embedded quotes."""
    flattened = value.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    escaped = flattened.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
