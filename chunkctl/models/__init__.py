"""Data models for chunkctl.

Provides Pydantic models for the store's wire format and dataclasses for
per-file records and upload progress tracking.
"""

from __future__ import annotations

from .base import BaseModel
from .file_record import FileRecord
from .progress import (
    FileStatus,
    UploadProgress,
    UploadResult,
    UploadStatusSummary,
    percent_of,
)
from .store import (
    ChunkAck,
    CreateSessionRequest,
    FinalLocation,
    SessionCreated,
    SessionStatus,
)

__all__ = [
    # Base
    "BaseModel",
    # Wire
    "CreateSessionRequest",
    "SessionCreated",
    "ChunkAck",
    "SessionStatus",
    "FinalLocation",
    # Records
    "FileRecord",
    "FileStatus",
    # Progress
    "UploadProgress",
    "UploadResult",
    "UploadStatusSummary",
    "percent_of",
]
