"""Media upload commands for albumctl."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from albumctl.cli.common import Context, ExitCode, global_options, handle_errors, require_auth
from albumctl.core.client import ApiClient
from albumctl.core.exceptions import ConfigurationError, FileValidationError
from albumctl.core.output import (
    OutputFormat,
    create_spinner,
    print_error,
    print_json,
    print_output,
    print_success,
)
from albumctl.models.media import LocalFile
from albumctl.uploads.session import (
    AlbumDestination,
    PublicAlbumDestination,
    UploadCoordinator,
    UploadDestination,
    UploadResult,
)
from albumctl.uploads.validation import validate_file


@click.group()
def media() -> None:
    """Validate and upload photos and videos."""
    pass


# =============================================================================
# Helpers
# =============================================================================


def _run_upload(ctx: Context, path: Path, destination: UploadDestination) -> UploadResult:
    profile = ctx.get_profile()
    local = LocalFile.from_path(path)

    async def _upload(api: ApiClient) -> UploadResult:
        uploads = UploadCoordinator(
            api,
            max_size_mb=profile.max_upload_mb,
            allow_videos=profile.allow_videos,
        )
        validation = await uploads.select(local)
        if not validation.valid:
            raise FileValidationError(local.name, validation.error or "invalid file")
        return await uploads.upload(destination)

    if ctx.quiet or ctx.output_format == OutputFormat.JSON:
        return ctx.run(_upload)

    with create_spinner() as progress:
        progress.add_task(f"Uploading {local.name} ({local.size_mb:.2f}MB)...", total=None)
        return ctx.run(_upload)


def _report(ctx: Context, result: UploadResult) -> None:
    if ctx.output_format == OutputFormat.JSON:
        print_json(
            {
                "success": result.success,
                "phase": result.phase.value,
                "file_name": result.file_name,
                "media_id": result.media_id,
                "error": result.error,
            }
        )
    elif ctx.quiet:
        if result.success:
            click.echo(result.media_id)
    elif result.success:
        print_success(f"Uploaded {result.file_name} (media {result.media_id})")
    else:
        print_error(f"Upload {result.phase.value}: {result.error or 'no details'}")

    if not result.success:
        raise SystemExit(ExitCode.GENERAL_ERROR)


# =============================================================================
# Commands
# =============================================================================


@media.command("validate")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@global_options
@handle_errors
def media_validate(ctx: Context, files: tuple[Path, ...]) -> None:
    """Check files against the upload rules without contacting the server.

    Example:
        albumctl media validate IMG_0001.jpg clip.mov
    """
    profile = ctx.get_profile()
    rows = []
    for path in files:
        local = LocalFile.from_path(path)
        result = validate_file(local, profile.max_upload_mb, profile.allow_videos)
        rows.append(
            {
                "name": local.name,
                "upload_name": result.sanitized_name or local.name,
                "type": local.content_type or "-",
                "size_mb": f"{local.size_mb:.2f}",
                "valid": result.valid,
                "error": result.error,
            }
        )

    print_output(
        rows,
        format=ctx.output_format,
        columns=["name", "type", "size_mb", "valid", "error"],
        column_labels={"size_mb": "Size (MB)"},
        quiet=ctx.quiet,
        id_field="upload_name",
    )

    if not all(row["valid"] for row in rows):
        raise SystemExit(ExitCode.GENERAL_ERROR)


@media.command("upload")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--album", "-a", "album_id", help="Album ID (defaults to the profile's default_album)")
@global_options
@require_auth
@handle_errors
def media_upload(ctx: Context, file: Path, album_id: Optional[str]) -> None:
    """Upload a file to one of your albums.

    Example:
        albumctl media upload IMG_0001.jpg --album 42
    """
    album_id = album_id or ctx.get_profile().default_album
    if not album_id:
        raise ConfigurationError("No album given. Use --album or set default_album in the profile.")

    _report(ctx, _run_upload(ctx, file, AlbumDestination(album_id)))


@media.command("upload-public")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--album", "-a", "album_identifier", required=True, help="Public album identifier")
@click.option("--session-token", envvar="ALBUM_SESSION_TOKEN", help="Album access session token")
@click.option("--name", "contributor_name", help="Contributor name shown with the upload")
@global_options
@handle_errors
def media_upload_public(
    ctx: Context,
    file: Path,
    album_identifier: str,
    session_token: Optional[str],
    contributor_name: Optional[str],
) -> None:
    """Upload a file to a public album; no sign-in needed.

    Example:
        albumctl media upload-public party.jpg --album summer-2024 --name Sam
    """
    destination = PublicAlbumDestination(
        album_identifier,
        session_token=session_token,
        contributor_name=contributor_name,
    )
    _report(ctx, _run_upload(ctx, file, destination))


@media.command("cancel")
@click.argument("media_id")
@global_options
@require_auth
@handle_errors
def media_cancel(ctx: Context, media_id: str) -> None:
    """Release a pending upload placeholder on the server.

    Example:
        albumctl media cancel 1f0c...
    """
    ctx.run(lambda api: api.cancel_upload(media_id))
    if ctx.quiet:
        click.echo(media_id)
    else:
        print_success(f"Cancelled upload {media_id}")
