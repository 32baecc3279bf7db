"""Progress models for tracking upload status.

Provides dataclasses for per-file upload progress and run results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from chunkctl.core.exceptions import ErrorKind


class FileStatus(Enum):
    """Lifecycle states of a queued file."""

    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """Check if no run is pending or in flight."""
        return self in (FileStatus.SUCCESS, FileStatus.ERROR)


def percent_of(done: int, total: int) -> int:
    """Integer percentage, rounded half up and clamped to [0, 100]."""
    if total <= 0:
        return 0
    value = (done * 200 + total) // (2 * total)
    return max(0, min(100, value))


@dataclass(frozen=True)
class UploadProgress:
    """Progress event pushed to consumers while a file uploads."""

    file_id: str
    percent: int
    bytes_confirmed: int = 0
    bytes_in_flight: int = 0
    total_bytes: int = 0
    chunk_index: Optional[int] = None
    chunks_confirmed: int = 0
    total_chunks: int = 0
    upload_id: str = ""

    @property
    def bytes_sent(self) -> int:
        """Bytes confirmed plus bytes of the chunk currently streaming."""
        return self.bytes_confirmed + self.bytes_in_flight


@dataclass
class UploadResult:
    """Outcome of one orchestrator run for one file."""

    file_id: str
    success: bool
    file_name: str = ""
    file_size: int = 0
    upload_id: str = ""
    final_path: str = ""
    chunks_total: int = 0
    chunks_sent: int = 0
    chunks_skipped: int = 0
    duration: float = 0.0
    error: str = ""
    error_kind: Optional[ErrorKind] = None
    checksum_verified: Optional[bool] = None

    @property
    def resumable(self) -> bool:
        """Check if a later resume could pick this upload up."""
        return not self.success and bool(self.upload_id) and self.error_kind not in (
            ErrorKind.SESSION_MISMATCH,
            ErrorKind.INVALID_FILE,
        )

    @property
    def throughput_mbps(self) -> float:
        """Approximate upload throughput in MB/s for this run."""
        if self.duration == 0 or self.chunks_total == 0:
            return 0.0
        sent_bytes = self.file_size * self.chunks_sent / self.chunks_total
        return sent_bytes / (1024 * 1024) / self.duration


@dataclass(frozen=True)
class UploadStatusSummary:
    """Remote progress of an upload identifier, for display."""

    upload_id: str
    confirmed_indices: tuple[int, ...]
    total_chunks: Optional[int] = None
    chunk_size: Optional[int] = None
    total_size: Optional[int] = None
    status: Optional[str] = None

    @property
    def confirmed_count(self) -> int:
        return len(self.confirmed_indices)

    @property
    def percent(self) -> Optional[int]:
        """Chunk-count percentage, when the store reports a total."""
        if not self.total_chunks:
            return None
        return percent_of(self.confirmed_count, self.total_chunks)

    def to_dict(self) -> dict[str, object]:
        return {
            "upload_id": self.upload_id,
            "status": self.status or "",
            "confirmed": self.confirmed_count,
            "total_chunks": self.total_chunks,
            "percent": self.percent,
            "chunk_size": self.chunk_size,
            "total_size": self.total_size,
            "confirmed_indices": list(self.confirmed_indices),
        }
