"""Protocol definition (port) for the notes vault.

The sync core never touches the filesystem directly; everything goes through
this narrow interface so a real directory and an in-memory fake are
interchangeable.
"""

from __future__ import annotations

from typing import Protocol


class VaultStorage(Protocol):
    async def exists(self, path: str) -> bool: ...

    async def read_note(self, path: str) -> str: ...

    async def write_note(self, path: str, text: str, *, overwrite: bool = False) -> None: ...

    async def write_binary(self, path: str, data: bytes) -> None: ...

    async def create_folder(self, path: str) -> None: ...

    async def delete_note(self, path: str) -> None: ...

    async def delete_folder(self, path: str) -> None: ...

    async def list_notes(self, folder: str) -> list[str]: ...
