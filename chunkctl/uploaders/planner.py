"""Chunk planning for resumable uploads.

Splits a file of known size into dense, index-ordered byte ranges. Planning is
pure: the same inputs always yield the same plan, and nothing here touches
the file or the network.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import overload


@dataclass(frozen=True)
class ChunkDescriptor:
    """Byte range of one chunk within a source file."""

    index: int
    offset: int
    length: int

    @property
    def end(self) -> int:
        """Offset one past the last byte of the chunk."""
        return self.offset + self.length


def total_chunks(file_size: int, chunk_size: int) -> int:
    """Return the number of chunks needed for a file.

    A zero-length file still has one (empty) chunk.

    Args:
        file_size: File size in bytes.
        chunk_size: Chunk size in bytes.

    Returns:
        ``ceil(file_size / chunk_size)``, or 1 for an empty file.

    Raises:
        ValueError: If chunk_size is not positive or file_size is negative.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if file_size < 0:
        raise ValueError(f"file_size must not be negative, got {file_size}")

    if file_size == 0:
        return 1
    return -(-file_size // chunk_size)


class ChunkPlan(Sequence[ChunkDescriptor]):
    """Immutable, lazily computed sequence of chunk descriptors."""

    def __init__(self, file_size: int, chunk_size: int) -> None:
        self._count = total_chunks(file_size, chunk_size)
        self.file_size = file_size
        self.chunk_size = chunk_size

    @property
    def total_chunks(self) -> int:
        return self._count

    def _descriptor(self, index: int) -> ChunkDescriptor:
        offset = index * self.chunk_size
        return ChunkDescriptor(
            index=index,
            offset=offset,
            length=min(self.chunk_size, self.file_size - offset),
        )

    def __len__(self) -> int:
        return self._count

    @overload
    def __getitem__(self, index: int) -> ChunkDescriptor: ...

    @overload
    def __getitem__(self, index: slice) -> list[ChunkDescriptor]: ...

    def __getitem__(self, index: int | slice) -> ChunkDescriptor | list[ChunkDescriptor]:
        if isinstance(index, slice):
            return [self._descriptor(i) for i in range(*index.indices(self._count))]
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError(f"chunk index out of range: {index}")
        return self._descriptor(index)

    def __iter__(self) -> Iterator[ChunkDescriptor]:
        for index in range(self._count):
            yield self._descriptor(index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChunkPlan):
            return NotImplemented
        return (self.file_size, self.chunk_size) == (other.file_size, other.chunk_size)

    def __hash__(self) -> int:
        return hash((self.file_size, self.chunk_size))

    def __repr__(self) -> str:
        return (
            f"ChunkPlan(file_size={self.file_size}, chunk_size={self.chunk_size}, "
            f"total_chunks={self._count})"
        )


def plan_chunks(file_size: int, chunk_size: int) -> ChunkPlan:
    """Plan the chunks for a file.

    Args:
        file_size: File size in bytes.
        chunk_size: Chunk size in bytes.

    Returns:
        ChunkPlan covering ``[0, file_size)`` exactly.
    """
    return ChunkPlan(file_size, chunk_size)
