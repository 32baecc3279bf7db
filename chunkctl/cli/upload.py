"""Upload commands for chunkctl."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import nullcontext
from pathlib import Path
from typing import Optional

import click
from rich.progress import Progress, TaskID

from chunkctl.cli.common import Context, ExitCode, global_options, handle_errors
from chunkctl.core.exceptions import ErrorKind
from chunkctl.core.ledger import UploadLedger
from chunkctl.core.output import (
    OutputFormat,
    create_progress,
    format_size,
    print_error,
    print_output,
    print_success,
    print_warning,
)
from chunkctl.core.validation import validate_chunk_size, validate_upload_id, validate_upload_path
from chunkctl.models.file_record import FileRecord
from chunkctl.models.progress import FileStatus, UploadProgress, UploadResult
from chunkctl.services.uploads import UploadManager
from chunkctl.uploaders.constants import DEFAULT_UPLOAD_WORKERS

RESULT_COLUMNS = ["file", "status", "upload_id", "chunks", "skipped", "duration", "detail"]
PENDING_COLUMNS = ["path", "upload_id", "size", "chunk_size", "url", "created_at"]


# =============================================================================
# Helpers
# =============================================================================


def _ledger_listener(
    ledger: UploadLedger,
    paths: dict[str, Path],
    url: str,
    chunk_size: int,
) -> Callable[[FileRecord], None]:
    """Keep the resume ledger in step with record changes."""
    recorded: set[str] = set()

    def listener(record: FileRecord) -> None:
        path = paths.get(record.file_id)
        if path is None:
            return
        if record.status == FileStatus.SUCCESS:
            ledger.forget(path)
        elif record.status == FileStatus.ERROR and record.error_kind == ErrorKind.SESSION_MISMATCH:
            # The store will never accept this id for this file again
            ledger.forget(path)
        elif record.upload_id and record.upload_id not in recorded:
            recorded.add(record.upload_id)
            ledger.record(path, record.upload_id, url, record.size, chunk_size)

    return listener


def _progress_updater(progress: Progress, task: TaskID) -> Callable[[UploadProgress], None]:
    def update(p: UploadProgress) -> None:
        progress.update(task, completed=p.bytes_sent, total=p.total_bytes)

    return update


def _run_uploads(
    ctx: Context,
    jobs: list[tuple[Path, Optional[str]]],
    *,
    chunk_size: int,
    workers: int,
    verify: bool,
) -> list[tuple[Path, UploadResult]]:
    """Upload (or resume) each job and return results in job order."""
    client = ctx.get_client()
    show_progress = ctx.output_format == OutputFormat.TABLE and not ctx.quiet

    with UploadManager(
        client,
        chunk_size=chunk_size,
        workers=workers,
        verify_checksum=verify,
    ) as manager:
        paths: dict[str, Path] = {}
        for path, _ in jobs:
            paths[manager.register_path(path)] = path
        manager.subscribe(_ledger_listener(ctx.ledger, paths, client.base_url, chunk_size))

        with create_progress() if show_progress else nullcontext() as progress:
            futures = []
            for (path, upload_id), file_id in zip(jobs, paths):
                callback = None
                if progress is not None:
                    record = manager.get_file(file_id)
                    task = progress.add_task(record.name, total=record.size)
                    callback = _progress_updater(progress, task)
                futures.append((path, manager.submit_upload(file_id, upload_id, callback)))

            try:
                return [(path, future.result()) for path, future in futures]
            except KeyboardInterrupt:
                manager.cancel_all()
                print_warning("Interrupted; stopping after the chunk in flight...")
                return [(path, future.result()) for path, future in futures]


def _result_row(path: Path, result: UploadResult) -> dict[str, object]:
    if result.success:
        status = "success"
        detail = result.final_path
        if result.checksum_verified is False:
            detail = f"{detail} (checksum mismatch)"
    else:
        status = result.error_kind.value if result.error_kind else "error"
        detail = result.error
    return {
        "file": str(path),
        "status": status,
        "upload_id": result.upload_id,
        "chunks": f"{result.chunks_sent + result.chunks_skipped}/{result.chunks_total}",
        "skipped": result.chunks_skipped,
        "duration": f"{result.duration:.1f}s",
        "detail": detail,
        "checksum_verified": result.checksum_verified,
        "throughput_mbps": round(result.throughput_mbps, 2),
    }


def _report(ctx: Context, results: list[tuple[Path, UploadResult]]) -> None:
    """Print results and exit non-zero if any upload failed."""
    rows = [_result_row(path, result) for path, result in results]

    if ctx.output_format == OutputFormat.JSON or ctx.quiet:
        print_output(rows, format=ctx.output_format, quiet=ctx.quiet)
    elif len(results) == 1 and results[0][1].success:
        path, result = results[0]
        print_success(
            f"Uploaded {path.name} ({format_size(result.file_size)}) "
            f"in {result.duration:.1f}s -> {result.final_path}"
        )
    else:
        print_output(rows, format=OutputFormat.TABLE, columns=RESULT_COLUMNS, title="Uploads")

    failed = [(path, result) for path, result in results if not result.success]
    if not failed:
        return

    cancelled = False
    for path, result in failed:
        if result.error_kind == ErrorKind.CANCELLED:
            cancelled = True
        if not ctx.quiet:
            print_error(f"{path.name}: {result.error}")
            if result.resumable:
                click.echo(f"  Resume with: chunkctl resume {path}", err=True)
    raise SystemExit(ExitCode.USER_CANCELLED if cancelled else ExitCode.GENERAL_ERROR)


# =============================================================================
# Commands
# =============================================================================


@click.command("upload")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--chunk-size", "-c", help="Chunk size, e.g. 512K or 8MiB (defaults to profile)")
@click.option(
    "--workers",
    "-w",
    type=int,
    default=DEFAULT_UPLOAD_WORKERS,
    show_default=True,
    help="Files uploaded concurrently",
)
@click.option("--verify/--no-verify", default=False, help="Compare MD5 with the store after upload")
@global_options
@handle_errors
def upload(
    ctx: Context,
    paths: tuple[str, ...],
    chunk_size: Optional[str],
    workers: int,
    verify: bool,
) -> None:
    """Upload one or more files in resumable chunks.

    Example:
        chunkctl upload ./video.mp4
        chunkctl upload ./a.bin ./b.bin --chunk-size 8MiB --workers 2
    """
    size = validate_chunk_size(chunk_size) if chunk_size else ctx.get_profile().chunk_size
    jobs: list[tuple[Path, Optional[str]]] = [(validate_upload_path(p), None) for p in paths]
    _report(ctx, _run_uploads(ctx, jobs, chunk_size=size, workers=workers, verify=verify))


@click.command("resume")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--upload-id", "-u", help="Upload ID to resume (defaults to the recorded one)")
@click.option("--chunk-size", "-c", help="Chunk size the upload was started with")
@click.option("--verify/--no-verify", default=False, help="Compare MD5 with the store after upload")
@global_options
@handle_errors
def resume(
    ctx: Context,
    path: str,
    upload_id: Optional[str],
    chunk_size: Optional[str],
    verify: bool,
) -> None:
    """Resume an interrupted upload, sending only the missing chunks.

    Example:
        chunkctl resume ./video.mp4
        chunkctl resume ./video.mp4 --upload-id 3f2a... --chunk-size 1MiB
    """
    resolved = validate_upload_path(path)
    client = ctx.get_client()
    entry = ctx.ledger.get(resolved, client.base_url)

    if upload_id:
        upload_id = validate_upload_id(upload_id)
    elif entry is not None:
        upload_id = entry.upload_id
    else:
        raise click.ClickException(
            f"No pending upload recorded for {resolved}. Pass --upload-id."
        )

    if chunk_size:
        size = validate_chunk_size(chunk_size)
    elif entry is not None and entry.upload_id == upload_id:
        size = entry.chunk_size
    else:
        size = ctx.get_profile().chunk_size

    _report(ctx, _run_uploads(ctx, [(resolved, upload_id)], chunk_size=size, workers=1, verify=verify))


@click.command("status")
@click.argument("upload_id")
@global_options
@handle_errors
def status(ctx: Context, upload_id: str) -> None:
    """Show which chunks the store holds for an upload.

    Example:
        chunkctl status 3f2a9c...
    """
    summary = UploadManager(ctx.get_client()).query_upload_status(upload_id)
    data = summary.to_dict()

    if ctx.output_format == OutputFormat.JSON or ctx.quiet:
        print_output(data, format=ctx.output_format, quiet=ctx.quiet)
        return

    data.pop("confirmed_indices")
    data["percent"] = f"{summary.percent}%" if summary.percent is not None else None
    data["chunk_size"] = format_size(summary.chunk_size) or None
    data["total_size"] = format_size(summary.total_size) or None
    print_output(data, format=OutputFormat.TABLE, title=f"Upload {summary.upload_id}")


@click.command("pending")
@global_options
@handle_errors
def pending(ctx: Context) -> None:
    """List unfinished uploads recorded on this machine."""
    rows = [
        {
            "path": entry.path,
            "upload_id": entry.upload_id,
            "size": format_size(entry.file_size),
            "chunk_size": format_size(entry.chunk_size),
            "url": entry.url,
            "created_at": entry.created_at.isoformat(timespec="seconds"),
        }
        for entry in ctx.ledger.entries()
    ]
    print_output(
        rows,
        format=ctx.output_format,
        columns=PENDING_COLUMNS,
        title="Pending uploads",
        quiet=ctx.quiet,
    )


@click.command("forget")
@click.argument("path", type=click.Path())
@global_options
@handle_errors
def forget(ctx: Context, path: str) -> None:
    """Drop the recorded upload ID for a file.

    The store keeps whatever chunks it already received.
    """
    if ctx.ledger.forget(path):
        print_success(f"Forgot pending upload for {path}")
    else:
        print_warning(f"No pending upload recorded for {path}")
