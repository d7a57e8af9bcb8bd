"""Vault storage backed by a directory on disk."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
from pathlib import Path

from pinbox_syncer.core.url_utils import normalize_path
from pinbox_syncer.domain.exceptions import FolderExistsError, NoteNotFoundError, VaultError

logger = logging.getLogger(__name__)


def _io_failure(action: str, path: str, exc: OSError) -> VaultError:
    msg = f"Could not {action} {path}: {exc.strerror or exc}"
    return VaultError(msg, {"path": path, "errno": exc.errno})


class FilesystemVault:
    """Real files under ``root``; every path is vault-relative and ``/``-separated.

    Blocking filesystem calls run in a worker thread so the event loop keeps
    serving HTTP while a note is written.
    """

    def __init__(self, root: str | os.PathLike[str], *, trash_folder: str | None = None) -> None:
        self.root = Path(root).expanduser().resolve()
        self.trash_folder = normalize_path(trash_folder) if trash_folder else None

    def _resolve(self, path: str) -> Path:
        relative = normalize_path(path)
        target = (self.root / relative).resolve() if relative else self.root
        if target != self.root and self.root not in target.parents:
            msg = f"Path escapes the vault root: {path}"
            raise VaultError(msg, {"path": path, "root": str(self.root)})
        return target

    async def exists(self, path: str) -> bool:
        target = self._resolve(path)
        return await asyncio.to_thread(target.exists)

    async def read_note(self, path: str) -> str:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except FileNotFoundError as exc:
            msg = f"Note not found: {path}"
            raise NoteNotFoundError(msg, {"path": path}) from exc
        except OSError as exc:
            raise _io_failure("read", path, exc) from exc

    async def write_note(self, path: str, text: str, *, overwrite: bool = False) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._atomic_write, target, text.encode("utf-8"), overwrite, path)
        except OSError as exc:
            raise _io_failure("write", path, exc) from exc
        logger.debug("vault_note_written", extra={"path": path, "chars": len(text)})

    async def write_binary(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._atomic_write, target, data, True, path)
        except OSError as exc:
            raise _io_failure("write", path, exc) from exc
        logger.debug("vault_binary_written", extra={"path": path, "bytes": len(data)})

    def _atomic_write(self, target: Path, data: bytes, overwrite: bool, path: str) -> None:
        if target.exists() and not overwrite:
            msg = f"File already exists: {path}"
            raise VaultError(msg, {"path": path})
        if not target.parent.is_dir():
            msg = f"Parent folder does not exist: {path}"
            raise VaultError(msg, {"path": path})

        fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    async def create_folder(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.mkdir, parents=True, exist_ok=False)
        except FileExistsError as exc:
            msg = f"Folder already exists: {path}"
            raise FolderExistsError(msg, {"path": path}) from exc
        except OSError as exc:
            raise _io_failure("create", path, exc) from exc
        logger.debug("vault_folder_created", extra={"path": path})

    async def delete_note(self, path: str) -> None:
        target = self._resolve(path)
        if not target.is_file():
            msg = f"Note not found: {path}"
            raise NoteNotFoundError(msg, {"path": path})
        try:
            if self.trash_folder:
                await asyncio.to_thread(self._move_to_trash, target)
            else:
                await asyncio.to_thread(target.unlink)
        except OSError as exc:
            raise _io_failure("delete", path, exc) from exc
        logger.debug("vault_note_deleted", extra={"path": path, "trashed": bool(self.trash_folder)})

    def _move_to_trash(self, target: Path) -> None:
        trash = self._resolve(self.trash_folder or "")
        trash.mkdir(parents=True, exist_ok=True)
        destination = trash / target.name
        counter = 1
        while destination.exists():
            destination = trash / f"{target.stem} {counter}{target.suffix}"
            counter += 1
        shutil.move(str(target), str(destination))

    async def delete_folder(self, path: str) -> None:
        target = self._resolve(path)
        if target == self.root:
            msg = "Refusing to delete the vault root"
            raise VaultError(msg, {"path": path})
        if not target.is_dir():
            msg = f"Folder not found: {path}"
            raise NoteNotFoundError(msg, {"path": path})
        try:
            await asyncio.to_thread(shutil.rmtree, target)
        except OSError as exc:
            raise _io_failure("delete", path, exc) from exc
        logger.debug("vault_folder_deleted", extra={"path": path})

    async def list_notes(self, folder: str) -> list[str]:
        base = self._resolve(folder)
        if not base.is_dir():
            return []

        def _walk() -> list[str]:
            return sorted(
                candidate.relative_to(self.root).as_posix()
                for candidate in base.rglob("*.md")
                if candidate.is_file()
            )

        return await asyncio.to_thread(_walk)
