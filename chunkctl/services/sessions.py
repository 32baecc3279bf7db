"""Transfer session service for the remote chunk store.

A transfer session is the client-side view of one remote upload identifier:
its immutable chunk plan plus the set of chunk indices the store has
confirmed. The confirmed set only grows through store acknowledgements or a
fresh status query; nothing here marks a chunk done on the client's say-so.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from chunkctl.core.exceptions import (
    IncompleteUploadError,
    ProtocolInconsistencyError,
    RemoteStoreError,
    ResourceNotFoundError,
    SessionMismatchError,
    UploadNotFoundError,
)
from chunkctl.models.progress import UploadStatusSummary, percent_of
from chunkctl.models.store import (
    ChunkAck,
    CreateSessionRequest,
    FinalLocation,
    SessionCreated,
    SessionStatus,
)
from chunkctl.uploaders.planner import ChunkDescriptor, ChunkPlan, plan_chunks
from chunkctl.uploaders.reconciler import confirmed_bytes, missing_chunks

from .base import BaseService

logger = logging.getLogger(__name__)

# Store statuses that mean "finalize refused because chunks are missing"
INCOMPLETE_STATUS_CODES = {400, 409}


# =============================================================================
# Transfer Session
# =============================================================================


@dataclass
class TransferSession:
    """Plan and confirmed-chunk state for one upload identifier."""

    upload_id: str
    file_name: str
    file_size: int
    chunk_size: int
    confirmed: set[int] = field(default_factory=set)

    def __post_init__(self) -> None:
        self._plan = plan_chunks(self.file_size, self.chunk_size)

    @property
    def plan(self) -> ChunkPlan:
        return self._plan

    @property
    def total_chunks(self) -> int:
        return self._plan.total_chunks

    def missing(self) -> list[ChunkDescriptor]:
        """Planned chunks not yet confirmed, ascending by index."""
        return missing_chunks(self._plan, self.confirmed)

    def confirm(self, ack: ChunkAck) -> None:
        """Record an acknowledged chunk. Repeats are no-ops."""
        if not 0 <= ack.index < self.total_chunks:
            raise ProtocolInconsistencyError(
                f"Acknowledged index {ack.index} outside plan of {self.total_chunks} chunks",
                self.upload_id,
            )
        self.confirmed.add(ack.index)

    @property
    def is_complete(self) -> bool:
        return len(self.confirmed) == self.total_chunks

    @property
    def confirmed_bytes(self) -> int:
        return confirmed_bytes(self._plan, self.confirmed)

    def percent(self, in_flight: int = 0) -> int:
        """Percent of bytes confirmed, counting bytes of the chunk in flight."""
        if self.file_size == 0:
            return 100 if self.is_complete else 0
        return percent_of(self.confirmed_bytes + in_flight, self.file_size)


# =============================================================================
# Session Service
# =============================================================================


class TransferSessionService(BaseService):
    """Create, reconcile, and finalize upload sessions on the store."""

    def _session_path(self, upload_id: str, action: str) -> str:
        return self._build_path("upload", upload_id, action)

    def create(self, file_name: str, file_size: int, chunk_size: int) -> TransferSession:
        """Open a new upload session.

        Args:
            file_name: Display name recorded by the store.
            file_size: Total size in bytes.
            chunk_size: Chunk size in bytes.

        Returns:
            Session with an empty confirmed set.

        Raises:
            ProtocolInconsistencyError: If the store's echoed chunk size or
                chunk count disagrees with the local plan.
        """
        plan = plan_chunks(file_size, chunk_size)
        request = CreateSessionRequest(
            file_name=file_name,
            total_size=file_size,
            chunk_size=chunk_size,
        )
        data = self._post("/upload/init", json=request.model_dump())

        try:
            created = SessionCreated.model_validate(data)
        except PydanticValidationError as e:
            raise ProtocolInconsistencyError(f"Malformed session response: {e}") from e

        if created.chunk_size != chunk_size:
            raise ProtocolInconsistencyError(
                f"Store recorded chunk size {created.chunk_size}, requested {chunk_size}",
                created.upload_id,
            )
        if created.total_chunks != plan.total_chunks:
            raise ProtocolInconsistencyError(
                f"Store expects {created.total_chunks} chunks, plan has {plan.total_chunks}",
                created.upload_id,
            )

        logger.info(
            "Created upload %s for %s (%d bytes, %d chunks)",
            created.upload_id,
            file_name,
            file_size,
            plan.total_chunks,
        )
        return TransferSession(
            upload_id=created.upload_id,
            file_name=file_name,
            file_size=file_size,
            chunk_size=chunk_size,
        )

    def reconcile(self, upload_id: str) -> SessionStatus:
        """Query the confirmed chunk set for an upload.

        Raises:
            UploadNotFoundError: If the store does not know the identifier.
        """
        try:
            data = self._json(self.client.get(self._session_path(upload_id, "status")), upload_id)
        except ResourceNotFoundError as e:
            raise UploadNotFoundError(upload_id) from e

        try:
            status = SessionStatus.model_validate(data)
        except PydanticValidationError as e:
            raise ProtocolInconsistencyError(f"Malformed status response: {e}", upload_id) from e

        if status.upload_id != upload_id:
            raise ProtocolInconsistencyError(
                f"Status response names upload {status.upload_id}",
                upload_id,
            )
        return status

    def attach(
        self,
        upload_id: str,
        file_name: str,
        file_size: int,
        chunk_size: int,
    ) -> TransferSession:
        """Rebuild a session for resume from the store's recorded state.

        Args:
            upload_id: Identifier from an earlier run.
            file_name: Display name of the local file.
            file_size: Local file size in bytes.
            chunk_size: Chunk size the caller intends to use.

        Returns:
            Session whose confirmed set comes from the store.

        Raises:
            UploadNotFoundError: If the store does not know the identifier.
            SessionMismatchError: If the recorded chunk size or file size
                differs from the caller's, or the recorded chunk count differs
                and no chunk size is reported.
            ProtocolInconsistencyError: If the recorded chunk count or any
                confirmed index disagrees with the local plan.
        """
        status = self.reconcile(upload_id)
        plan = plan_chunks(file_size, chunk_size)

        if status.chunk_size is not None and status.chunk_size != chunk_size:
            raise SessionMismatchError(
                f"Upload was started with chunk size {status.chunk_size}, "
                f"resume requested {chunk_size}",
                upload_id,
            )
        if status.total_size is not None and status.total_size != file_size:
            raise SessionMismatchError(
                f"Upload was started for {status.total_size} bytes, "
                f"local file has {file_size}",
                upload_id,
            )
        if status.total_chunks is not None and status.total_chunks != plan.total_chunks:
            if status.chunk_size is None:
                # Count disagrees and no recorded size to compare: the upload
                # was started with another chunk size
                raise SessionMismatchError(
                    f"Upload was planned as {status.total_chunks} chunks, "
                    f"chunk size {chunk_size} gives {plan.total_chunks}",
                    upload_id,
                )
            raise ProtocolInconsistencyError(
                f"Store expects {status.total_chunks} chunks, plan has {plan.total_chunks}",
                upload_id,
            )
        if status.chunk_size is None:
            logger.warning(
                "Store did not report a chunk size for %s; assuming %d. "
                "The assembled size is checked at finalize.",
                upload_id,
                chunk_size,
            )

        confirmed = status.confirmed
        stray = sorted(i for i in confirmed if not 0 <= i < plan.total_chunks)
        if stray:
            raise ProtocolInconsistencyError(
                f"Store reports chunk indices outside the plan: {stray}",
                upload_id,
            )

        logger.info(
            "Attached to upload %s: %d/%d chunks confirmed",
            upload_id,
            len(confirmed),
            plan.total_chunks,
        )
        return TransferSession(
            upload_id=upload_id,
            file_name=file_name,
            file_size=file_size,
            chunk_size=chunk_size,
            confirmed=set(confirmed),
        )

    def finalize(self, upload_id: str, file_size: Optional[int] = None) -> FinalLocation:
        """Ask the store to assemble the chunks.

        Args:
            upload_id: Upload identifier.
            file_size: Expected assembled size. Checked when the store
                reports one.

        Raises:
            IncompleteUploadError: If the store reports missing chunks.
            UploadNotFoundError: If the store does not know the identifier.
            ProtocolInconsistencyError: If the assembled size differs from
                ``file_size``.
        """
        try:
            resp = self.client.post(self._session_path(upload_id, "complete"))
        except ResourceNotFoundError as e:
            raise UploadNotFoundError(upload_id) from e
        except RemoteStoreError as e:
            if e.status_code in INCOMPLETE_STATUS_CODES:
                raise IncompleteUploadError(
                    f"Store refused to finalize: {e.reason or 'chunks missing'}",
                    upload_id,
                ) from e
            raise

        try:
            location = FinalLocation.model_validate(self._json(resp, upload_id))
        except PydanticValidationError as e:
            raise ProtocolInconsistencyError(f"Malformed completion response: {e}", upload_id) from e

        if (
            file_size is not None
            and location.file_size is not None
            and location.file_size != file_size
        ):
            raise ProtocolInconsistencyError(
                f"Store assembled {location.file_size} bytes at {location.final_path}, "
                f"local file has {file_size}",
                upload_id,
            )

        logger.info("Finalized upload %s at %s", upload_id, location.final_path)
        return location

    def summarize(self, upload_id: str) -> UploadStatusSummary:
        """Status of an upload identifier for display."""
        status = self.reconcile(upload_id)
        return UploadStatusSummary(
            upload_id=status.upload_id,
            confirmed_indices=tuple(sorted(status.confirmed)),
            total_chunks=status.total_chunks,
            chunk_size=status.chunk_size,
            total_size=status.total_size,
            status=status.status,
        )

