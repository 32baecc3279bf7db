"""Per-file record tracked by the upload queue."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from chunkctl.core.exceptions import ErrorKind

from .progress import FileStatus


@dataclass
class FileRecord:
    """Status of one registered file as seen by consumers."""

    file_id: str
    name: str
    size: int
    content_type: str
    status: FileStatus = FileStatus.PENDING
    progress: int = 0
    upload_id: Optional[str] = None
    final_path: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_uploading(self) -> bool:
        return self.status == FileStatus.UPLOADING

    def snapshot(self) -> FileRecord:
        """Return a detached copy safe to hand to consumers."""
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "name": self.name,
            "size": self.size,
            "content_type": self.content_type,
            "status": self.status.value,
            "progress": self.progress,
            "upload_id": self.upload_id or "",
            "final_path": self.final_path or "",
            "error": self.error or "",
        }
