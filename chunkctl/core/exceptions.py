"""Exception hierarchy for chunkctl.

Provides typed exceptions for different failure modes with clear error messages.
Every exception carries an ``ErrorKind`` so callers can branch on the failure
class without matching on exception types.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Failure classes surfaced on a file's terminal error status."""

    NETWORK_FAILURE = "network_failure"
    PROTOCOL_INCONSISTENCY = "protocol_inconsistency"
    SESSION_MISMATCH = "session_mismatch"
    INCOMPLETE_UPLOAD = "incomplete_upload"
    INVALID_FILE = "invalid_file"
    CANCELLED = "cancelled"
    REMOTE_REJECTED = "remote_rejected"
    CLIENT = "client"


class ChunkctlError(Exception):
    """Base exception for all chunkctl errors."""

    kind: ErrorKind = ErrorKind.CLIENT

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ChunkctlError):
    """Error in configuration (missing, invalid, or malformed)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ChunkctlError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


class InvalidChunkSizeError(ValidationError):
    """Chunk size is not a positive byte count."""

    def __init__(self, value: Any, reason: str = ""):
        msg = f"Invalid chunk size: {value}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="chunk_size", value=value)
        self.reason = reason


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(ChunkctlError):
    """Base class for connection-related errors."""

    kind = ErrorKind.NETWORK_FAILURE

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url


class NetworkError(ConnectionError):
    """Network-level error (DNS, TCP, TLS, dropped stream)."""

    def __init__(self, url: str, cause: str | None = None):
        msg = f"Network error talking to {url}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, url)
        self.cause = cause


class ServerUnreachableError(ConnectionError):
    """Server is not reachable."""

    def __init__(self, url: str):
        super().__init__(f"Server unreachable: {url}", url)


class TimeoutError(ConnectionError):
    """Request timed out."""

    def __init__(self, url: str, timeout: float):
        super().__init__(f"Request timed out after {timeout}s: {url}", url)
        self.timeout = timeout


# =============================================================================
# Remote Store Errors
# =============================================================================


class RemoteStoreError(ChunkctlError):
    """The remote store answered with an error status."""

    kind = ErrorKind.REMOTE_REJECTED

    def __init__(
        self,
        status_code: int,
        method: str,
        path: str,
        reason: str = "",
    ):
        msg = f"Remote store rejected {method} {path}: HTTP {status_code}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, {"status_code": status_code})
        self.status_code = status_code
        self.method = method
        self.path = path
        self.reason = reason


class AuthenticationError(ChunkctlError):
    """The store refused the request's credentials."""

    kind = ErrorKind.REMOTE_REJECTED

    def __init__(self, url: str | None = None, reason: str = ""):
        msg = "Authentication failed"
        if url:
            msg = f"{msg} for {url}"
        if reason:
            msg = f"{msg}: {reason}"
        details = {"url": url} if url else {}
        super().__init__(msg, details)
        self.url = url
        self.reason = reason


class ResourceNotFoundError(ChunkctlError):
    """Requested remote resource does not exist."""

    kind = ErrorKind.REMOTE_REJECTED

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# =============================================================================
# Upload Errors
# =============================================================================


class UploadError(ChunkctlError):
    """Error while driving a chunked upload."""

    def __init__(
        self,
        message: str,
        upload_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details = dict(details or {})
        if upload_id:
            full_details["upload_id"] = upload_id
        super().__init__(message, full_details)
        self.upload_id = upload_id


class ProtocolInconsistencyError(UploadError):
    """The store echoed values that disagree with the client's own plan."""

    kind = ErrorKind.PROTOCOL_INCONSISTENCY


class SessionMismatchError(UploadError):
    """A resume presented parameters the recorded session does not match."""

    kind = ErrorKind.SESSION_MISMATCH


class UploadNotFoundError(SessionMismatchError):
    """The store has no session for the given upload identifier."""

    def __init__(self, upload_id: str):
        super().__init__(f"Upload session not found: {upload_id}", upload_id)


class IncompleteUploadError(UploadError):
    """Finalize was attempted before every planned chunk was confirmed."""

    kind = ErrorKind.INCOMPLETE_UPLOAD


class InvalidFileError(UploadError):
    """The byte source is empty, truncated, or unreadable."""

    kind = ErrorKind.INVALID_FILE

    def __init__(self, message: str, file_name: str | None = None):
        super().__init__(message, details={"file": file_name} if file_name else None)
        self.file_name = file_name


class UploadCancelledError(UploadError):
    """The upload was cancelled at a chunk boundary."""

    kind = ErrorKind.CANCELLED


# =============================================================================
# Queue Errors
# =============================================================================


class UploadInProgressError(ChunkctlError):
    """The file already has an upload run in flight."""

    def __init__(self, file_id: str, action: str = "start"):
        super().__init__(
            f"Cannot {action} {file_id}: upload already in progress",
            {"file_id": file_id},
        )
        self.file_id = file_id
        self.action = action


class FileNotRegisteredError(ChunkctlError):
    """No file is registered under the given identifier."""

    def __init__(self, file_id: str):
        super().__init__(f"File not registered: {file_id}", {"file_id": file_id})
        self.file_id = file_id
