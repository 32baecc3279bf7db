"""Core modules for chunkctl."""

from chunkctl.core.client import StoreClient
from chunkctl.core.config import CONFIG_DIR, CONFIG_FILE, Config, Profile
from chunkctl.core.exceptions import (
    AuthenticationError,
    ChunkctlError,
    ConfigurationError,
    ConnectionError,
    ErrorKind,
    IncompleteUploadError,
    InvalidFileError,
    NetworkError,
    ProtocolInconsistencyError,
    RemoteStoreError,
    ResourceNotFoundError,
    SessionMismatchError,
    UploadCancelledError,
    UploadError,
    UploadInProgressError,
    UploadNotFoundError,
    ValidationError,
)
from chunkctl.core.ledger import LedgerEntry, UploadLedger
from chunkctl.core.logging import LogContext, get_audit_logger, setup_logging
from chunkctl.core.output import (
    OutputFormat,
    console,
    print_error,
    print_json,
    print_output,
    print_success,
    print_table,
    print_warning,
)
from chunkctl.core.validation import (
    parse_size,
    validate_chunk_size,
    validate_server_url,
    validate_timeout,
    validate_upload_id,
    validate_upload_path,
    validate_workers,
)

__all__ = [
    # Exceptions
    "ChunkctlError",
    "ErrorKind",
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "RemoteStoreError",
    "ResourceNotFoundError",
    "ValidationError",
    "UploadError",
    "ProtocolInconsistencyError",
    "SessionMismatchError",
    "UploadNotFoundError",
    "IncompleteUploadError",
    "InvalidFileError",
    "UploadCancelledError",
    "UploadInProgressError",
    # Validation
    "parse_size",
    "validate_chunk_size",
    "validate_server_url",
    "validate_timeout",
    "validate_upload_id",
    "validate_upload_path",
    "validate_workers",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Client
    "StoreClient",
    # Ledger
    "LedgerEntry",
    "UploadLedger",
    # Output
    "OutputFormat",
    "print_output",
    "print_table",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "get_audit_logger",
    "setup_logging",
    "LogContext",
]
