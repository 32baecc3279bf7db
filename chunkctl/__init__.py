"""chunkctl - Resumable chunked uploads over HTTP.

This package splits large files into fixed-size chunks, sends them to a
remote chunk store one at a time, and resumes interrupted transfers by
asking the store which chunks it already holds:
- Library API via ``UploadManager``
- ``chunkctl`` command-line client with progress bars and a resume ledger
"""

__version__ = "0.1.0"

from chunkctl.core.client import StoreClient
from chunkctl.core.config import Config, Profile
from chunkctl.core.exceptions import (
    ChunkctlError,
    ErrorKind,
    IncompleteUploadError,
    InvalidFileError,
    NetworkError,
    ProtocolInconsistencyError,
    SessionMismatchError,
    UploadCancelledError,
    UploadInProgressError,
)
from chunkctl.models.file_record import FileRecord
from chunkctl.models.progress import FileStatus, UploadProgress, UploadResult
from chunkctl.services.uploads import UploadManager
from chunkctl.uploaders.sources import BytesByteSource, FileByteSource

__all__ = [
    "__version__",
    "StoreClient",
    "Config",
    "Profile",
    "UploadManager",
    "FileRecord",
    "FileStatus",
    "UploadProgress",
    "UploadResult",
    "FileByteSource",
    "BytesByteSource",
    "ChunkctlError",
    "ErrorKind",
    "NetworkError",
    "ProtocolInconsistencyError",
    "SessionMismatchError",
    "IncompleteUploadError",
    "InvalidFileError",
    "UploadCancelledError",
    "UploadInProgressError",
]
