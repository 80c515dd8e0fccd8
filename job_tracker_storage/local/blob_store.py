"""
On-device string-keyed blob storage.

Provides the durable key-value layer the collections cache into:
- One file per key under a base directory
- Atomic writes using temp file + rename
- Missing keys read as None rather than raising
"""

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError


class BlobStore(ABC):
    """String-keyed blob storage.

    Values are opaque strings; the snapshot layer decides the encoding.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value for ``key`` or None if absent.

        Raises:
            StorageIOError: If the value exists but cannot be read
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Raises:
            StorageIOError: If the write fails
        """
        ...

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove ``key``. Returns False if it did not exist."""
        ...


class FileBlobStore(BlobStore):
    """Blob store backed by one file per key.

    Directory structure:
    {base_path}/
      {key}.json
    """

    def __init__(self, base_path: Path | str) -> None:
        self.base_path = Path(base_path)

    def _path(self, key: str) -> Path:
        # Percent-encoding keeps distinct keys in distinct files
        return self.base_path / f"{quote(key, safe='')}.json"

    async def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            if not await aiofiles.os.path.exists(path):
                return None
            async with aiofiles.open(path, encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageIOError("read_blob", str(path), e) from e

    async def set(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
        except OSError as e:
            raise StorageIOError("create_directory", str(path.parent), e) from e

        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".json")
        try:
            os.close(fd)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(value)
                await f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            await aiofiles.os.replace(temp_path, path)
        except Exception as e:
            try:
                await aiofiles.os.remove(temp_path)
            except OSError:
                pass
            raise StorageIOError("write_blob", str(path), e) from e

    async def remove(self, key: str) -> bool:
        path = self._path(key)
        try:
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)
                return True
            return False
        except OSError as e:
            raise StorageIOError("remove_blob", str(path), e) from e
