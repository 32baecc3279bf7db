"""Common CLI utilities, decorators, and helpers."""

from __future__ import annotations

import sys
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import click

from chunkctl.core.client import StoreClient
from chunkctl.core.config import Config, Profile, get_token
from chunkctl.core.exceptions import (
    AuthenticationError,
    ChunkctlError,
    ConfigurationError,
    ConnectionError,
    ProfileNotFoundError,
)
from chunkctl.core.ledger import UploadLedger
from chunkctl.core.logging import setup_logging
from chunkctl.core.output import OutputFormat, print_error

F = TypeVar("F", bound=Callable[..., Any])


# =============================================================================
# Context Object
# =============================================================================


class Context:
    """CLI context object passed to commands."""

    def __init__(self) -> None:
        self.config: Optional[Config] = None
        self.client: Optional[StoreClient] = None
        self.profile_name: Optional[str] = None
        self.output_format: OutputFormat = OutputFormat.TABLE
        self.quiet: bool = False
        self.verbose: bool = False
        self.ledger: UploadLedger = UploadLedger()

    def get_profile(self) -> Profile:
        """Resolve the active profile.

        Raises:
            ConfigurationError: If no matching profile is configured.
        """
        if self.config is None:
            self.config = Config.load()

        try:
            return self.config.get_profile(self.profile_name)
        except ProfileNotFoundError as e:
            raise ConfigurationError(
                f"Profile '{self.profile_name or self.config.default_profile}' not found. "
                "Run 'chunkctl config init' or set CHUNKCTL_URL."
            ) from e

    def get_client(self) -> StoreClient:
        """Get or create the store client for the active profile."""
        if self.client is not None:
            return self.client

        profile = self.get_profile()
        self.client = StoreClient(
            base_url=profile.url,
            token=get_token(),
            timeout=profile.timeout,
            verify_ssl=profile.verify_ssl,
        )
        return self.client


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Global Options
# =============================================================================


def global_options(f: F) -> F:
    """Add global options to a command."""

    @click.option(
        "--profile",
        "-p",
        envvar="CHUNKCTL_PROFILE",
        help="Config profile to use",
    )
    @click.option(
        "--output",
        "-o",
        "output_format",
        type=click.Choice(["json", "table"]),
        default="table",
        help="Output format",
    )
    @click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Minimal output (upload IDs only)",
    )
    @click.option(
        "--verbose",
        "-v",
        is_flag=True,
        help="Enable verbose output",
    )
    @pass_context
    @wraps(f)
    def wrapper(
        ctx: Context,
        profile: Optional[str],
        output_format: str,
        quiet: bool,
        verbose: bool,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Populate context from global options and invoke the command."""
        ctx.profile_name = profile
        ctx.output_format = OutputFormat.from_string(output_format)
        ctx.quiet = quiet
        ctx.verbose = verbose

        setup_logging(quiet=quiet, verbose=verbose)
        ctx.config = Config.load()

        return f(ctx, *args, **kwargs)

    return wrapper  # type: ignore


# =============================================================================
# Error Handling
# =============================================================================


class ExitCode:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NETWORK_ERROR = 3
    PERMISSION_ERROR = 4
    USER_CANCELLED = 5


def exit_code_for(error: ChunkctlError) -> int:
    """Map an exception onto the process exit code."""
    if isinstance(error, ConnectionError):
        return ExitCode.NETWORK_ERROR
    if isinstance(error, AuthenticationError):
        return ExitCode.AUTH_ERROR
    return ExitCode.GENERAL_ERROR


def handle_errors(f: F) -> F:
    """Handle common errors and convert to CLI exits."""

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        """Capture errors and exit with consistent messaging."""
        try:
            return f(*args, **kwargs)
        except ChunkctlError as e:
            print_error(str(e))
            sys.exit(exit_code_for(e))

    return wrapper  # type: ignore
