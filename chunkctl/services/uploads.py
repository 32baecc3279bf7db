"""Upload service: orchestrates resumable chunked uploads.

Provides:
- UploadOrchestrator: drives one file from plan (or resume) to finalize
- UploadManager: the consumer-facing queue of files, runs, and status

Each file has at most one chunk in flight. Several files may upload at
once when runs are submitted to the manager's worker pool.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from chunkctl.core.exceptions import (
    ChunkctlError,
    ErrorKind,
    InvalidFileError,
    UploadCancelledError,
)
from chunkctl.core.logging import LogContext, get_audit_logger, log_context
from chunkctl.core.validation import (
    validate_chunk_size,
    validate_upload_id,
    validate_upload_path,
    validate_workers,
)
from chunkctl.models.file_record import FileRecord
from chunkctl.models.progress import UploadProgress, UploadResult, UploadStatusSummary
from chunkctl.models.store import FinalLocation
from chunkctl.uploaders.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_STREAM_BLOCK_SIZE,
    DEFAULT_UPLOAD_WORKERS,
)
from chunkctl.uploaders.sources import ByteSource, FileByteSource, source_md5
from chunkctl.uploaders.transmitter import ChunkTransmitter

from .queue import FileQueueState, StateListener
from .sessions import TransferSession, TransferSessionService

if TYPE_CHECKING:
    from chunkctl.core.client import StoreClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadProgress], None]


# =============================================================================
# Orchestrator
# =============================================================================


class UploadOrchestrator:
    """Drives a single upload run for one queued file.

    A run is fresh (new session) when no upload id is given, or a resume
    when one is. Either way the remote confirmed set decides which chunks
    are sent; the run never retries a failed chunk.
    """

    def __init__(
        self,
        client: "StoreClient",
        queue: FileQueueState,
        file_id: str,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        verify_checksum: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        block_size: int = DEFAULT_STREAM_BLOCK_SIZE,
    ) -> None:
        self.queue = queue
        self.file_id = file_id
        self.chunk_size = chunk_size
        self.verify_checksum = verify_checksum
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event or threading.Event()
        self.sessions = TransferSessionService(client)
        self.transmitter = ChunkTransmitter(client, block_size)
        self._last_percent = -1

    def begin(self, upload_id: Optional[str] = None) -> FileRecord:
        """Claim the file for this run.

        Pass the upload id of a resume so a failed record keeps its
        confirmed percent.

        Raises:
            UploadInProgressError: If another run already owns the file.
        """
        self._last_percent = -1
        return self.queue.begin(self.file_id, upload_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_source(self, record: FileRecord, source: ByteSource) -> None:
        if source.size == 0:
            raise InvalidFileError("Refusing to upload an empty file", record.name)
        if source.size != record.size:
            raise InvalidFileError(
                f"Source is {source.size} bytes but {record.size} were registered",
                record.name,
            )

    def _open_session(self, record: FileRecord, upload_id: Optional[str]) -> TransferSession:
        if upload_id:
            return self.sessions.attach(upload_id, record.name, record.size, self.chunk_size)
        return self.sessions.create(record.name, record.size, self.chunk_size)

    def _emit(
        self,
        session: TransferSession,
        in_flight: int = 0,
        chunk_index: Optional[int] = None,
        *,
        finished: bool = False,
    ) -> None:
        percent = session.percent(in_flight)
        if not finished:
            # 100 is reserved for a finalized upload; succeed() sets it on the record
            percent = min(percent, 99)
        if percent <= self._last_percent:
            return
        self._last_percent = percent
        if not finished:
            self.queue.update_progress(self.file_id, percent)
        if self.progress_callback:
            self.progress_callback(
                UploadProgress(
                    file_id=self.file_id,
                    percent=percent,
                    bytes_confirmed=session.confirmed_bytes,
                    bytes_in_flight=in_flight,
                    total_bytes=session.file_size,
                    chunk_index=chunk_index,
                    chunks_confirmed=len(session.confirmed),
                    total_chunks=session.total_chunks,
                    upload_id=session.upload_id,
                )
            )

    def _confirmed_percent(self, session: Optional[TransferSession]) -> Optional[int]:
        """Percent the store holds, for a record that stops short of success."""
        if session is None:
            return None
        return min(session.percent(), 99)

    def _verify(
        self,
        ctx: LogContext,
        source: ByteSource,
        location: FinalLocation,
    ) -> Optional[bool]:
        if not location.checksum:
            ctx.debug("Store reported no checksum; skipping verification")
            return None
        local = source_md5(source)
        if local != location.checksum:
            ctx.warning(
                "Checksum mismatch for %s: local %s, store %s",
                location.final_path,
                local,
                location.checksum,
            )
            return False
        return True

    # =========================================================================
    # Run
    # =========================================================================

    def run(self, upload_id: Optional[str] = None) -> UploadResult:
        """Upload every missing chunk and finalize.

        Call ``begin()`` first. Failures that belong to the upload are turned
        into an ``error`` record and a failed result; anything else marks the
        record and propagates.

        Args:
            upload_id: Existing upload identifier to resume, or None to start
                a new session.

        Returns:
            UploadResult describing the run.
        """
        record = self.queue.get(self.file_id)
        source = self.queue.source(self.file_id)
        operation = "resume" if upload_id else "upload"
        result = UploadResult(
            file_id=self.file_id,
            success=False,
            file_name=record.name,
            file_size=record.size,
            upload_id=upload_id or "",
        )
        start_time = time.time()
        session: Optional[TransferSession] = None

        try:
            with log_context(operation, logger, file=record.name, size=record.size) as ctx:
                self._check_source(record, source)
                session = self._open_session(record, upload_id)
                ctx.bind(upload_id=session.upload_id)
                self.queue.attach_session(self.file_id, session.upload_id)
                result.upload_id = session.upload_id
                result.chunks_total = session.total_chunks

                pending = session.missing()
                result.chunks_skipped = session.total_chunks - len(pending)
                if result.chunks_skipped:
                    ctx.info("%d chunk(s) already on the store", result.chunks_skipped)
                self._emit(session)

                for chunk in pending:
                    if self.cancel_event.is_set():
                        raise UploadCancelledError(
                            f"Upload cancelled before chunk {chunk.index}",
                            session.upload_id,
                        )
                    data = source.read(chunk.offset, chunk.length)

                    def on_bytes(sent: int, total: int, index: int = chunk.index) -> None:
                        self._emit(session, sent, index)

                    ack = self.transmitter.send(session.upload_id, chunk, data, on_bytes)
                    session.confirm(ack)
                    result.chunks_sent += 1
                    self._emit(session, 0, chunk.index)

                location = self.sessions.finalize(session.upload_id, session.file_size)
                result.final_path = location.final_path
                if self.verify_checksum:
                    result.checksum_verified = self._verify(ctx, source, location)

            self.queue.succeed(self.file_id, location.final_path)
            self._emit(session, finished=True)
            result.success = True
        except ChunkctlError as e:
            result.error = str(e)
            result.error_kind = e.kind
            self.queue.fail(self.file_id, str(e), e.kind, self._confirmed_percent(session))
        except Exception as e:
            self.queue.fail(
                self.file_id,
                f"Unexpected error: {e}",
                ErrorKind.CLIENT,
                self._confirmed_percent(session),
            )
            raise
        finally:
            result.duration = time.time() - start_time
            get_audit_logger().log_operation(
                operation,
                upload_id=result.upload_id or None,
                file_name=record.name,
                file_size=record.size,
                success=result.success,
                details={
                    "chunks_sent": result.chunks_sent,
                    "chunks_skipped": result.chunks_skipped,
                    "error_kind": result.error_kind.value if result.error_kind else None,
                },
            )

        return result


# =============================================================================
# Manager
# =============================================================================


class UploadManager:
    """Consumer-facing interface for registering files and running uploads."""

    def __init__(
        self,
        client: "StoreClient",
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        workers: int = DEFAULT_UPLOAD_WORKERS,
        verify_checksum: bool = False,
        block_size: int = DEFAULT_STREAM_BLOCK_SIZE,
    ) -> None:
        """Initialize the manager.

        Args:
            client: StoreClient used for every session and chunk request.
            chunk_size: Chunk size for new uploads and resumes, in bytes.
            workers: Files uploaded concurrently by ``submit_upload``.
            verify_checksum: Compare local and remote MD5 after finalize.
            block_size: Streaming block size, which sets progress granularity.
        """
        self.client = client
        self.chunk_size = validate_chunk_size(chunk_size)
        self.workers = validate_workers(workers)
        self.verify_checksum = verify_checksum
        self.block_size = block_size
        self.queue = FileQueueState()
        self.sessions = TransferSessionService(client)
        self._lock = threading.Lock()
        self._cancel_events: dict[str, threading.Event] = {}
        self._executor: Optional[ThreadPoolExecutor] = None

    # =========================================================================
    # Registration and queries
    # =========================================================================

    def register_file(
        self,
        source: ByteSource,
        display_name: str,
        size: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> str:
        """Register a byte source as a pending upload.

        Returns:
            New file id.
        """
        return self.queue.add(source, display_name, size, content_type).file_id

    def register_path(self, path: str | Path, content_type: Optional[str] = None) -> str:
        """Register a file on disk as a pending upload."""
        source = FileByteSource(validate_upload_path(path))
        return self.register_file(source, source.name, content_type=content_type)

    def get_file(self, file_id: str) -> FileRecord:
        return self.queue.get(file_id)

    def list_files(self) -> list[FileRecord]:
        return self.queue.list_records()

    def remove_file(self, file_id: str) -> FileRecord:
        return self.queue.remove(file_id)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Receive a record snapshot after every state change."""
        return self.queue.subscribe(listener)

    def query_upload_status(self, upload_id: str) -> UploadStatusSummary:
        return self.sessions.summarize(validate_upload_id(upload_id))

    # =========================================================================
    # Runs
    # =========================================================================

    def _prepare(
        self,
        file_id: str,
        progress_callback: Optional[ProgressCallback],
        upload_id: Optional[str] = None,
    ) -> UploadOrchestrator:
        event = threading.Event()
        orchestrator = UploadOrchestrator(
            self.client,
            self.queue,
            file_id,
            chunk_size=self.chunk_size,
            verify_checksum=self.verify_checksum,
            progress_callback=progress_callback,
            cancel_event=event,
            block_size=self.block_size,
        )
        orchestrator.begin(upload_id)
        with self._lock:
            self._cancel_events[file_id] = event
        return orchestrator

    def _execute(self, orchestrator: UploadOrchestrator, upload_id: Optional[str]) -> UploadResult:
        try:
            return orchestrator.run(upload_id)
        finally:
            with self._lock:
                if self._cancel_events.get(orchestrator.file_id) is orchestrator.cancel_event:
                    del self._cancel_events[orchestrator.file_id]

    def start_upload(
        self,
        file_id: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload a registered file from scratch, blocking until done.

        Raises:
            UploadInProgressError: If the file is already uploading.
        """
        return self._execute(self._prepare(file_id, progress_callback), None)

    def resume_upload(
        self,
        file_id: str,
        upload_id: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Resume an earlier upload of a registered file, blocking until done."""
        upload_id = validate_upload_id(upload_id)
        return self._execute(self._prepare(file_id, progress_callback, upload_id), upload_id)

    def submit_upload(
        self,
        file_id: str,
        upload_id: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Future[UploadResult]:
        """Queue a run on the worker pool.

        The file is claimed before this returns, so a second submit for the
        same file raises ``UploadInProgressError`` immediately.
        """
        if upload_id:
            upload_id = validate_upload_id(upload_id)
        orchestrator = self._prepare(file_id, progress_callback, upload_id)
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.workers,
                    thread_name_prefix="chunkctl-upload",
                )
            executor = self._executor
        return executor.submit(self._execute, orchestrator, upload_id)

    def cancel_upload(self, file_id: str) -> bool:
        """Request cancellation at the next chunk boundary.

        Returns:
            True if a run was in flight for the file.
        """
        with self._lock:
            event = self._cancel_events.get(file_id)
        if event is None:
            return False
        event.set()
        logger.info("Cancellation requested for %s", file_id)
        return True

    def cancel_all(self) -> int:
        """Cancel every in-flight run. Returns how many were signalled."""
        with self._lock:
            events = list(self._cancel_events.values())
        for event in events:
            event.set()
        return len(events)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self) -> UploadManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()
