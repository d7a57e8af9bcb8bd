"""Synchronize Pinbox bookmarks into a local Markdown notes vault."""

__version__ = "1.2.0"
