"""File queue state: the single owner of per-file upload records.

Records and their byte sources live in one map keyed by file id. Only this
class mutates a record; consumers receive snapshots, both from the getters
and through subscribed listeners.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from typing import Optional

from chunkctl.core.exceptions import ErrorKind, FileNotRegisteredError, UploadInProgressError
from chunkctl.models.file_record import FileRecord
from chunkctl.models.progress import FileStatus
from chunkctl.uploaders.constants import DEFAULT_CONTENT_TYPE
from chunkctl.uploaders.sources import ByteSource

logger = logging.getLogger(__name__)

StateListener = Callable[[FileRecord], None]


class FileQueueState:
    """Thread-safe registry of files and their upload status."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, FileRecord] = {}
        self._sources: dict[str, ByteSource] = {}
        self._listeners: list[StateListener] = []

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for record changes.

        Returns:
            Callable that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: FileRecord) -> None:
        # Called without the lock held so listeners may read the queue
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)

    # =========================================================================
    # Registration
    # =========================================================================

    def add(
        self,
        source: ByteSource,
        name: Optional[str] = None,
        size: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> FileRecord:
        """Register a byte source as a pending file."""
        record = FileRecord(
            file_id=uuid.uuid4().hex,
            name=name or source.name,
            size=source.size if size is None else size,
            content_type=content_type
            or getattr(source, "content_type", None)
            or DEFAULT_CONTENT_TYPE,
        )
        with self._lock:
            self._records[record.file_id] = record
            self._sources[record.file_id] = source
            snapshot = record.snapshot()

        logger.debug("Registered %s as %s (%d bytes)", record.name, record.file_id, record.size)
        self._notify(snapshot)
        return snapshot

    def _record(self, file_id: str) -> FileRecord:
        record = self._records.get(file_id)
        if record is None:
            raise FileNotRegisteredError(file_id)
        return record

    def get(self, file_id: str) -> FileRecord:
        with self._lock:
            return self._record(file_id).snapshot()

    def source(self, file_id: str) -> ByteSource:
        with self._lock:
            self._record(file_id)
            return self._sources[file_id]

    def list_records(self) -> list[FileRecord]:
        """Snapshots of every record, oldest registration first."""
        with self._lock:
            return [record.snapshot() for record in self._records.values()]

    def remove(self, file_id: str) -> FileRecord:
        """Drop a file that is not currently uploading.

        Raises:
            FileNotRegisteredError: If the id is unknown.
            UploadInProgressError: If a run is in flight for the file.
        """
        with self._lock:
            record = self._record(file_id)
            if record.is_uploading:
                raise UploadInProgressError(file_id, "remove")
            del self._records[file_id]
            del self._sources[file_id]
            return record.snapshot()

    # =========================================================================
    # Transitions
    # =========================================================================

    def begin(self, file_id: str, upload_id: Optional[str] = None) -> FileRecord:
        """Move a file to ``uploading``.

        Progress restarts at 0 unless a failed record is resumed under the
        session it already holds, in which case its confirmed percent stays.

        Raises:
            UploadInProgressError: If the file is already uploading. The
                in-flight run is left untouched.
        """
        with self._lock:
            record = self._record(file_id)
            if record.is_uploading:
                raise UploadInProgressError(file_id)
            resuming = (
                upload_id is not None
                and record.status == FileStatus.ERROR
                and upload_id == record.upload_id
            )
            record.status = FileStatus.UPLOADING
            if not resuming:
                record.progress = 0
            record.error = None
            record.error_kind = None
            record.final_path = None
            snapshot = record.snapshot()
        self._notify(snapshot)
        return snapshot

    def attach_session(self, file_id: str, upload_id: str) -> None:
        """Record the remote upload identifier as soon as it is known."""
        with self._lock:
            record = self._record(file_id)
            record.upload_id = upload_id
            snapshot = record.snapshot()
        self._notify(snapshot)

    def update_progress(self, file_id: str, percent: int) -> bool:
        """Raise the recorded percent. Lower or equal values are ignored.

        Returns:
            True if the record changed.
        """
        with self._lock:
            record = self._record(file_id)
            if percent <= record.progress:
                return False
            record.progress = min(percent, 100)
            snapshot = record.snapshot()
        self._notify(snapshot)
        return True

    def succeed(self, file_id: str, final_path: str) -> FileRecord:
        with self._lock:
            record = self._record(file_id)
            record.status = FileStatus.SUCCESS
            record.progress = 100
            record.final_path = final_path
            snapshot = record.snapshot()
        self._notify(snapshot)
        return snapshot

    def fail(
        self,
        file_id: str,
        error: str,
        kind: ErrorKind,
        progress: Optional[int] = None,
    ) -> FileRecord:
        """Move a file to ``error``.

        ``progress`` replaces the recorded percent when given, so a failed
        record shows what the store actually holds.
        """
        with self._lock:
            record = self._record(file_id)
            record.status = FileStatus.ERROR
            if progress is not None:
                record.progress = max(0, min(progress, 100))
            record.error = error
            record.error_kind = kind
            snapshot = record.snapshot()
        self._notify(snapshot)
        return snapshot
