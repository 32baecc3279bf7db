"""Chunking and transport primitives for chunkctl.

This module provides the building blocks of a chunked upload:
- Chunk planning (deterministic descriptors for a file size)
- Byte sources (files on disk or in-memory buffers)
- Resume reconciliation (which planned chunks are still missing)
- Chunk transmission (stream one chunk, validate the ack)

These are internal implementation details. Use ``UploadManager`` from
``chunkctl.services.uploads`` as the public API.
"""

from chunkctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_STREAM_BLOCK_SIZE,
    DEFAULT_TIMEOUT,
    DEFAULT_UPLOAD_WORKERS,
)
from chunkctl.uploaders.planner import ChunkDescriptor, ChunkPlan, plan_chunks, total_chunks
from chunkctl.uploaders.reconciler import confirmed_bytes, missing_chunks
from chunkctl.uploaders.sources import ByteSource, BytesByteSource, FileByteSource, source_md5
from chunkctl.uploaders.transmitter import ChunkTransmitter

__all__ = [
    # Constants
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_STREAM_BLOCK_SIZE",
    "DEFAULT_TIMEOUT",
    "DEFAULT_UPLOAD_WORKERS",
    # Planning
    "ChunkDescriptor",
    "ChunkPlan",
    "plan_chunks",
    "total_chunks",
    # Reconciliation
    "missing_chunks",
    "confirmed_bytes",
    # Sources
    "ByteSource",
    "BytesByteSource",
    "FileByteSource",
    "source_md5",
    # Transmission
    "ChunkTransmitter",
]
