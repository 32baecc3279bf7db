"""Service layer for chunkctl.

Provides the session service that talks to the remote store, the file queue
that owns per-file state, and the upload orchestration built on both.
"""

from __future__ import annotations

from .base import BaseService
from .queue import FileQueueState
from .sessions import TransferSession, TransferSessionService
from .uploads import UploadManager, UploadOrchestrator

__all__ = [
    "BaseService",
    "FileQueueState",
    "TransferSession",
    "TransferSessionService",
    "UploadManager",
    "UploadOrchestrator",
]
