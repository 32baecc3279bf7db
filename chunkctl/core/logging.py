"""Logging utilities for chunkctl.

Provides structured logging with audit trail support.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generator, Optional

# =============================================================================
# Constants
# =============================================================================

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
AUDIT_LOGGER_NAME = "chunkctl.audit"


# =============================================================================
# Logger Setup
# =============================================================================


def setup_logging(
    level: int = logging.WARNING,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Configure logging for chunkctl.

    Args:
        level: Base logging level.
        quiet: If True, only show errors.
        verbose: If True, show debug messages.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Log Context
# =============================================================================


class LogContext:
    """Context manager for structured logging with context fields."""

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **context: Any,
    ):
        """Initialize log context.

        Args:
            operation: Name of the operation.
            logger: Logger instance.
            **context: Additional context fields.
        """
        self.operation = operation
        self.logger = logger or logging.getLogger(__name__)
        self.context = context
        self.start_time: Optional[datetime] = None

    @property
    def elapsed(self) -> float:
        """Seconds since the context was entered."""
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def __enter__(self) -> "LogContext":
        """Enter context and log start."""
        self.start_time = datetime.now()
        self.logger.info("Starting %s (%s)", self.operation, self._context_str())
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context and log completion."""
        if exc_type:
            self.logger.error(
                "%s failed after %.2fs: %s",
                self.operation,
                self.elapsed,
                exc_val,
            )
        else:
            self.logger.info("%s completed in %.2fs", self.operation, self.elapsed)

    def bind(self, **context: Any) -> None:
        """Add context fields discovered mid-operation (e.g. an upload ID)."""
        self.context.update(context)

    def _context_str(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.context.items())

    def log(self, level: int, message: str, *args: Any) -> None:
        """Log a message with context.

        Args:
            level: Log level.
            message: Message format string.
            *args: Format arguments.
        """
        full_message = f"[{self.operation}] {message} ({self._context_str()})"
        self.logger.log(level, full_message, *args)

    def info(self, message: str, *args: Any) -> None:
        """Log info message."""
        self.log(logging.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        """Log warning message."""
        self.log(logging.WARNING, message, *args)

    def debug(self, message: str, *args: Any) -> None:
        """Log debug message."""
        self.log(logging.DEBUG, message, *args)


@contextmanager
def log_context(
    operation: str,
    logger: Optional[logging.Logger] = None,
    **context: Any,
) -> Generator[LogContext, None, None]:
    """Context manager for structured logging.

    Args:
        operation: Name of the operation.
        logger: Logger instance.
        **context: Additional context fields.

    Yields:
        LogContext instance.
    """
    ctx = LogContext(operation, logger, **context)
    with ctx:
        yield ctx


# =============================================================================
# Audit Logger
# =============================================================================


class AuditLogger:
    """Logger for audit trail of upload outcomes."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def log_operation(
        self,
        operation: str,
        *,
        upload_id: Optional[str] = None,
        file_name: Optional[str] = None,
        file_size: Optional[int] = None,
        success: bool = True,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log an auditable operation.

        Args:
            operation: Name of the operation ("upload", "resume", ...).
            upload_id: Remote upload identifier, if a session exists.
            file_name: Display name of the file.
            file_size: Size of the file in bytes.
            success: Whether operation succeeded.
            details: Additional details.
        """
        audit_record: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "operation": operation,
            "success": success,
        }

        if upload_id:
            audit_record["upload_id"] = upload_id
        if file_name:
            audit_record["file"] = file_name
        if file_size is not None:
            audit_record["size"] = file_size
        if details:
            audit_record["details"] = details

        level = logging.INFO if success else logging.WARNING
        self.logger.log(level, "AUDIT: %s", audit_record)


def get_audit_logger() -> AuditLogger:
    """Get the audit logger instance."""
    return AuditLogger()
