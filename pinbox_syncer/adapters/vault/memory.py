"""Dict-backed vault used by tests and dry runs."""

from __future__ import annotations

import posixpath

from pinbox_syncer.core.url_utils import normalize_path
from pinbox_syncer.domain.exceptions import FolderExistsError, NoteNotFoundError, VaultError


class InMemoryVault:
    def __init__(self) -> None:
        self.files: dict[str, str | bytes] = {}
        self.folders: set[str] = set()

    def _parent_exists(self, path: str) -> bool:
        parent = posixpath.dirname(path)
        return not parent or parent in self.folders

    async def exists(self, path: str) -> bool:
        key = normalize_path(path)
        return not key or key in self.files or key in self.folders

    async def read_note(self, path: str) -> str:
        key = normalize_path(path)
        content = self.files.get(key)
        if content is None:
            msg = f"Note not found: {path}"
            raise NoteNotFoundError(msg, {"path": path})
        if isinstance(content, bytes):
            return content.decode("utf-8")
        return content

    async def write_note(self, path: str, text: str, *, overwrite: bool = False) -> None:
        key = normalize_path(path)
        if key in self.files and not overwrite:
            msg = f"File already exists: {path}"
            raise VaultError(msg, {"path": path})
        if not self._parent_exists(key):
            msg = f"Parent folder does not exist: {path}"
            raise VaultError(msg, {"path": path})
        self.files[key] = text

    async def write_binary(self, path: str, data: bytes) -> None:
        key = normalize_path(path)
        if not self._parent_exists(key):
            msg = f"Parent folder does not exist: {path}"
            raise VaultError(msg, {"path": path})
        self.files[key] = bytes(data)

    async def create_folder(self, path: str) -> None:
        key = normalize_path(path)
        if key in self.folders:
            msg = f"Folder already exists: {path}"
            raise FolderExistsError(msg, {"path": path})
        parts = key.split("/")
        for depth in range(1, len(parts) + 1):
            self.folders.add("/".join(parts[:depth]))

    async def delete_note(self, path: str) -> None:
        key = normalize_path(path)
        if key not in self.files:
            msg = f"Note not found: {path}"
            raise NoteNotFoundError(msg, {"path": path})
        del self.files[key]

    async def delete_folder(self, path: str) -> None:
        key = normalize_path(path)
        if key not in self.folders:
            msg = f"Folder not found: {path}"
            raise NoteNotFoundError(msg, {"path": path})
        prefix = key + "/"
        self.folders = {f for f in self.folders if f != key and not f.startswith(prefix)}
        self.files = {p: c for p, c in self.files.items() if not p.startswith(prefix)}

    async def list_notes(self, folder: str) -> list[str]:
        key = normalize_path(folder)
        prefix = key + "/" if key else ""
        return sorted(p for p in self.files if p.startswith(prefix) and p.endswith(".md"))
