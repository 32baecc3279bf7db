"""Main CLI entry point for chunkctl."""

from __future__ import annotations

import click

from chunkctl import __version__
from chunkctl.cli.common import Context, global_options, handle_errors
from chunkctl.cli.config_cmd import config
from chunkctl.cli.upload import forget, pending, resume, status, upload
from chunkctl.core.output import OutputFormat, print_output, print_success

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="chunkctl")
def cli() -> None:
    """chunkctl - Resumable chunked uploads.

    Splits large files into chunks, uploads them one at a time, and resumes
    interrupted transfers by sending only the chunks the store is missing.

    Get started:

      chunkctl config init               # Create config file

      chunkctl upload ./big.iso          # Upload a file

      chunkctl resume ./big.iso          # Pick up where it stopped

    Use --help on any command for more information.
    """


# =============================================================================
# Register Commands
# =============================================================================

cli.add_command(config)
cli.add_command(upload)
cli.add_command(resume)
cli.add_command(status)
cli.add_command(pending)
cli.add_command(forget)


# =============================================================================
# Health
# =============================================================================


@cli.group()
def health() -> None:
    """Server health and connectivity checks."""


@health.command("ping")
@global_options
@handle_errors
def health_ping(ctx: Context) -> None:
    """Check that the chunk store answers."""
    result = ctx.get_client().ping()

    if ctx.output_format == OutputFormat.JSON:
        print_output(result, format=OutputFormat.JSON)
        return

    print_success(f"Server reachable: {result['url']}")
    print_output(
        {"status": result["status"], "latency": f"{result['latency_ms']}ms"},
        format=OutputFormat.TABLE,
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
