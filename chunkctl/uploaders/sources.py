"""Byte-addressable sources that chunks are read from."""

from __future__ import annotations

import hashlib
import mimetypes
from pathlib import Path
from typing import Protocol, runtime_checkable

from chunkctl.core.exceptions import InvalidFileError
from chunkctl.uploaders.constants import DEFAULT_CONTENT_TYPE, HASH_READ_SIZE


@runtime_checkable
class ByteSource(Protocol):
    """Random-access, read-only view over the bytes being uploaded."""

    @property
    def name(self) -> str: ...

    @property
    def size(self) -> int: ...

    def read(self, offset: int, length: int) -> bytes: ...


class FileByteSource:
    """Byte source backed by a file on disk.

    The file is opened per read so a source can be held for a long time
    (e.g. queued behind other uploads) without pinning a descriptor.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            self._size = self.path.stat().st_size
        except OSError as e:
            raise InvalidFileError(f"Cannot stat {self.path}: {e}", str(self.path)) from e

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.path.name)
        return guessed or DEFAULT_CONTENT_TYPE

    def read(self, offset: int, length: int) -> bytes:
        """Read exactly ``length`` bytes at ``offset``.

        Raises:
            InvalidFileError: If the file is unreadable or shorter than planned.
        """
        try:
            with self.path.open("rb") as handle:
                handle.seek(offset)
                data = handle.read(length)
        except OSError as e:
            raise InvalidFileError(f"Cannot read {self.path}: {e}", self.name) from e

        if len(data) != length:
            raise InvalidFileError(
                f"Short read from {self.path}: expected {length} bytes at offset "
                f"{offset}, got {len(data)} (file changed since it was planned?)",
                self.name,
            )
        return data

    def __repr__(self) -> str:
        return f"FileByteSource({str(self.path)!r}, size={self._size})"


class BytesByteSource:
    """Byte source over an in-memory buffer."""

    def __init__(self, data: bytes, name: str = "buffer") -> None:
        self._data = bytes(data)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return len(self._data)

    def read(self, offset: int, length: int) -> bytes:
        if offset < 0 or offset + length > len(self._data):
            raise InvalidFileError(
                f"Range {offset}+{length} outside buffer of {len(self._data)} bytes",
                self._name,
            )
        return self._data[offset : offset + length]

    def __repr__(self) -> str:
        return f"BytesByteSource({self._name!r}, size={len(self._data)})"


def source_md5(source: ByteSource, block_size: int = HASH_READ_SIZE) -> str:
    """Compute the MD5 hex digest of a whole source."""
    digest = hashlib.md5()
    offset = 0
    while offset < source.size:
        length = min(block_size, source.size - offset)
        digest.update(source.read(offset, length))
        offset += length
    return digest.hexdigest()
