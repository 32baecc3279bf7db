"""Input validation helpers for chunkctl."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import urlparse

from chunkctl.core.exceptions import (
    InvalidChunkSizeError,
    InvalidURLError,
    ValidationError,
)

# =============================================================================
# Constants
# =============================================================================

SIZE_UNITS = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "KIB": 1024,
    "M": 1024**2,
    "MB": 1024**2,
    "MIB": 1024**2,
    "G": 1024**3,
    "GB": 1024**3,
    "GIB": 1024**3,
}

SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([A-Za-z]*)\s*$")
UPLOAD_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")

# Chunks above this are almost certainly a typo (1 GiB)
MAX_CHUNK_SIZE = 1024**3


# =============================================================================
# URLs
# =============================================================================


def validate_server_url(url: str) -> str:
    """Validate and normalize a remote store base URL.

    Args:
        url: URL as typed by the user.

    Returns:
        URL without trailing slash.

    Raises:
        InvalidURLError: If the URL has no http(s) scheme or no host.
    """
    if not url or not url.strip():
        raise InvalidURLError(url, "URL is empty")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")

    return url.rstrip("/")


# =============================================================================
# Sizes
# =============================================================================


def parse_size(value: str | int) -> int:
    """Parse a byte count such as ``1048576``, ``512K`` or ``4MiB``.

    Args:
        value: Integer or string with an optional binary unit suffix.

    Returns:
        Size in bytes.

    Raises:
        ValidationError: If the value cannot be parsed.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid size: {value}", field="size", value=value)
    if isinstance(value, int):
        return value

    match = SIZE_PATTERN.match(value)
    if not match:
        raise ValidationError(f"Invalid size: {value}", field="size", value=value)

    number, unit = match.groups()
    multiplier = SIZE_UNITS.get(unit.upper())
    if multiplier is None:
        raise ValidationError(f"Unknown size unit: {unit}", field="size", value=value)
    return int(number) * multiplier


def validate_chunk_size(value: str | int) -> int:
    """Validate a chunk size.

    Args:
        value: Byte count or size string.

    Returns:
        Chunk size in bytes.

    Raises:
        InvalidChunkSizeError: If not in ``1..MAX_CHUNK_SIZE``.
    """
    try:
        size = parse_size(value)
    except ValidationError as e:
        raise InvalidChunkSizeError(value, e.message) from e

    if size <= 0:
        raise InvalidChunkSizeError(value, "must be positive")
    if size > MAX_CHUNK_SIZE:
        raise InvalidChunkSizeError(value, "must not exceed 1 GiB")
    return size


# =============================================================================
# Identifiers
# =============================================================================


def validate_upload_id(upload_id: str) -> str:
    """Validate an upload identifier pasted in by a user."""
    upload_id = (upload_id or "").strip()
    if not UPLOAD_ID_PATTERN.match(upload_id):
        raise ValidationError(
            f"Invalid upload ID: {upload_id!r}",
            field="upload_id",
            value=upload_id,
        )
    return upload_id


def validate_timeout(timeout: int | float) -> float:
    """Validate a request timeout in seconds."""
    if timeout <= 0:
        raise ValidationError("Timeout must be positive", field="timeout", value=timeout)
    return float(timeout)


def validate_workers(workers: int, maximum: int = 32) -> int:
    """Validate a worker count for concurrent file uploads."""
    if workers < 1 or workers > maximum:
        raise ValidationError(
            f"Workers must be between 1 and {maximum}",
            field="workers",
            value=workers,
        )
    return workers


# =============================================================================
# Paths
# =============================================================================


def validate_upload_path(path: str | Path) -> Path:
    """Validate that a path names a readable regular file.

    Returns:
        Absolute, resolved path.
    """
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        raise ValidationError(f"File not found: {path}", field="path", value=str(path))
    if not resolved.is_file():
        raise ValidationError(f"Not a regular file: {path}", field="path", value=str(path))
    return resolved
