"""Chunk transmitter: streams one chunk to the store and validates the ack.

This is an internal implementation detail. Use ``UploadManager`` from
``chunkctl.services.uploads`` as the public API.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from chunkctl.core.exceptions import InvalidFileError, ProtocolInconsistencyError
from chunkctl.models.store import ChunkAck
from chunkctl.uploaders.constants import DEFAULT_STREAM_BLOCK_SIZE
from chunkctl.uploaders.planner import ChunkDescriptor

if TYPE_CHECKING:
    from chunkctl.core.client import StoreClient

logger = logging.getLogger(__name__)

ByteProgressCallback = Callable[[int, int], None]


def chunk_path(upload_id: str) -> str:
    """API path that receives chunk bodies for an upload."""
    return f"/upload/{quote(upload_id, safe='')}/chunk"


class ChunkTransmitter:
    """Sends single chunks over a ``StoreClient``.

    One request per call and no retry: a failed send leaves the index
    unconfirmed and the caller decides what happens next.
    """

    def __init__(
        self,
        client: "StoreClient",
        block_size: int = DEFAULT_STREAM_BLOCK_SIZE,
    ) -> None:
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self.client = client
        self.block_size = block_size

    def _stream(
        self,
        data: bytes,
        progress_callback: Optional[ByteProgressCallback],
    ) -> Iterator[bytes]:
        total = len(data)
        view = memoryview(data)
        sent = 0
        while sent < total:
            block = bytes(view[sent : sent + self.block_size])
            yield block
            sent += len(block)
            if progress_callback:
                progress_callback(sent, total)

    def send(
        self,
        upload_id: str,
        chunk: ChunkDescriptor,
        data: bytes,
        progress_callback: Optional[ByteProgressCallback] = None,
    ) -> ChunkAck:
        """Transmit one chunk and return the validated acknowledgement.

        Args:
            upload_id: Remote upload identifier.
            chunk: Planned descriptor for the bytes being sent.
            data: Exactly ``chunk.length`` bytes read from the source.
            progress_callback: Called with ``(bytes_sent, bytes_total)`` after
                each streamed block and once more when the ack is accepted.

        Returns:
            The store's acknowledgement for ``chunk.index``.

        Raises:
            InvalidFileError: If ``data`` does not match the planned length.
            ProtocolInconsistencyError: If the ack is malformed or disagrees
                with the descriptor or the local bytes.
            ConnectionError: On transport failure (subclasses of it).
            RemoteStoreError: If the store rejects the chunk.
        """
        if len(data) != chunk.length:
            raise InvalidFileError(
                f"Chunk {chunk.index} expected {chunk.length} bytes, got {len(data)}"
            )

        local_md5 = hashlib.md5(data).hexdigest()
        body = self._stream(data, progress_callback) if data else b""

        logger.debug(
            "Sending chunk %d (%d bytes at offset %d) for %s",
            chunk.index,
            chunk.length,
            chunk.offset,
            upload_id,
        )
        resp = self.client.put(
            chunk_path(upload_id),
            params={"index": chunk.index},
            content=body,
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Length": str(chunk.length),
            },
        )

        try:
            ack = ChunkAck.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as e:
            raise ProtocolInconsistencyError(
                f"Malformed acknowledgement for chunk {chunk.index}: {e}",
                upload_id,
            ) from e

        if ack.index != chunk.index:
            raise ProtocolInconsistencyError(
                f"Store acknowledged chunk {ack.index} while chunk {chunk.index} was sent",
                upload_id,
            )
        if ack.size != chunk.length:
            raise ProtocolInconsistencyError(
                f"Store received {ack.size} bytes for chunk {chunk.index}, "
                f"expected {chunk.length}",
                upload_id,
            )
        if ack.checksum is not None and ack.checksum != local_md5:
            raise ProtocolInconsistencyError(
                f"Checksum mismatch for chunk {chunk.index}: "
                f"store {ack.checksum}, local {local_md5}",
                upload_id,
            )

        if progress_callback:
            progress_callback(chunk.length, chunk.length)
        return ack
