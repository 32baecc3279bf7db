"""Config commands for chunkctl."""

from __future__ import annotations

from typing import Optional

import click

from chunkctl.cli.common import handle_errors
from chunkctl.core.config import CONFIG_FILE, Config
from chunkctl.core.output import (
    OutputFormat,
    format_size,
    print_error,
    print_key_value,
    print_output,
    print_success,
)
from chunkctl.core.validation import validate_chunk_size, validate_server_url, validate_timeout
from chunkctl.uploaders.constants import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT


def _load_or_exit() -> Config:
    cfg = Config.load()
    if not cfg.profiles:
        print_error("No configuration found. Run 'chunkctl config init' first.")
        raise SystemExit(1)
    return cfg


@click.group()
def config() -> None:
    """Manage chunkctl configuration."""


@config.command("init")
@click.option("--url", prompt="Chunk store URL", help="Chunk store base URL")
@click.option("--profile", default="default", help="Profile name")
@click.option("--chunk-size", default=str(DEFAULT_CHUNK_SIZE), help="Default chunk size (e.g. 4MiB)")
@click.option("--force", is_flag=True, help="Overwrite existing profile")
@handle_errors
def config_init(url: str, profile: str, chunk_size: str, force: bool) -> None:
    """Create configuration file with a new profile.

    Example:
        chunkctl config init --url https://uploads.example.org
    """
    url = validate_server_url(url)
    size = validate_chunk_size(chunk_size)

    cfg = Config.load() if CONFIG_FILE.exists() else Config()
    if cfg.has_profile(profile) and not force:
        print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
        raise SystemExit(1)

    cfg.add_profile(name=profile, url=url, chunk_size=size)
    if len(cfg.profiles) == 1:
        cfg.default_profile = profile
    cfg.save()

    print_success(f"Configuration saved to {CONFIG_FILE}")
    print_key_value({"profile": profile, "url": url, "chunk_size": format_size(size)})


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
@handle_errors
def config_show(output: str) -> None:
    """Show current configuration."""
    cfg = _load_or_exit()

    data: dict[str, object] = {
        "config_file": str(CONFIG_FILE),
        "default_profile": cfg.default_profile,
        "output_format": cfg.output_format,
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        data["profile_details"] = {name: p.to_dict() for name, p in cfg.profiles.items()}
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")
    for name, profile in cfg.profiles.items():
        click.echo()
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(
            {
                "url": profile.url,
                "verify_ssl": profile.verify_ssl,
                "timeout": f"{profile.timeout}s",
                "chunk_size": format_size(profile.chunk_size),
            }
        )


@config.command("use-context")
@click.argument("profile")
@handle_errors
def config_use_context(profile: str) -> None:
    """Switch the active profile.

    Example:
        chunkctl config use-context production
    """
    cfg = Config.load()
    if not cfg.has_profile(profile):
        print_error(f"Profile '{profile}' not found.")
        click.echo(f"Available profiles: {', '.join(cfg.profiles.keys())}")
        raise SystemExit(1)

    cfg.set_default_profile(profile)
    cfg.save()
    print_success(f"Switched to profile '{profile}'")


@config.command("current-context")
@handle_errors
def config_current_context() -> None:
    """Show the current active profile."""
    click.echo(_load_or_exit().default_profile)


@config.command("add-profile")
@click.argument("name")
@click.option("--url", required=True, help="Chunk store base URL")
@click.option("--timeout", type=int, default=DEFAULT_TIMEOUT, help="Request timeout in seconds")
@click.option("--chunk-size", default=None, help="Default chunk size (e.g. 4MiB)")
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
@handle_errors
def config_add_profile(
    name: str,
    url: str,
    timeout: int,
    chunk_size: Optional[str],
    no_verify_ssl: bool,
) -> None:
    """Add a new profile.

    Example:
        chunkctl config add-profile dev --url http://localhost:8080 --chunk-size 256K
    """
    url = validate_server_url(url)
    validate_timeout(timeout)
    size = validate_chunk_size(chunk_size) if chunk_size else DEFAULT_CHUNK_SIZE

    cfg = Config.load()
    if cfg.has_profile(name):
        print_error(f"Profile '{name}' already exists.")
        raise SystemExit(1)

    cfg.add_profile(
        name=name,
        url=url,
        timeout=timeout,
        verify_ssl=not no_verify_ssl,
        chunk_size=size,
    )
    if len(cfg.profiles) == 1:
        cfg.default_profile = name
    cfg.save()
    print_success(f"Profile '{name}' added")


@config.command("remove-profile")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@handle_errors
def config_remove_profile(name: str, yes: bool) -> None:
    """Remove a profile.

    Example:
        chunkctl config remove-profile dev
    """
    cfg = Config.load()

    if not cfg.has_profile(name):
        print_error(f"Profile '{name}' not found.")
        raise SystemExit(1)

    if name == cfg.default_profile:
        print_error("Cannot remove the default profile. Switch to another profile first.")
        raise SystemExit(1)

    if not yes:
        click.confirm(f"Remove profile '{name}'?", abort=True)

    cfg.remove_profile(name)
    cfg.save()
    print_success(f"Profile '{name}' removed")
