"""Config commands for albumctl."""

from __future__ import annotations

from typing import Optional

import click

from albumctl.core.config import CONFIG_FILE, DEFAULT_MAX_UPLOAD_MB, Config, validate_api_url
from albumctl.core.exceptions import AlbumCtlError
from albumctl.core.output import OutputFormat, print_error, print_key_value, print_output, print_success


@click.group()
def config() -> None:
    """Manage albumctl configuration."""
    pass


@config.command("init")
@click.option("--url", prompt="Album API URL", help="API base URL (e.g. https://host/api/v1)")
@click.option("--profile", default="default", help="Profile name")
@click.option("--album", default=None, help="Default album ID for uploads")
@click.option("--max-upload-mb", type=float, default=DEFAULT_MAX_UPLOAD_MB, help="Upload size ceiling")
@click.option("--no-videos", is_flag=True, help="Reject video files")
@click.option("--no-verify-ssl", is_flag=True, help="Disable SSL verification")
@click.option("--force", is_flag=True, help="Overwrite an existing profile")
def config_init(
    url: str,
    profile: str,
    album: Optional[str],
    max_upload_mb: float,
    no_videos: bool,
    no_verify_ssl: bool,
    force: bool,
) -> None:
    """Create or update a profile in the config file.

    Example:
        albumctl config init --url https://photos.example.org/api/v1
    """
    try:
        url = validate_api_url(url)
    except AlbumCtlError as e:
        print_error(str(e))
        raise SystemExit(1) from e

    if CONFIG_FILE.exists():
        cfg = Config.load(CONFIG_FILE)
        if cfg.has_profile(profile) and not force:
            print_error(f"Profile '{profile}' already exists. Use --force to overwrite.")
            raise SystemExit(1)
    else:
        cfg = Config()

    cfg.add_profile(
        name=profile,
        url=url,
        default_album=album,
        max_upload_mb=max_upload_mb,
        allow_videos=not no_videos,
        verify_ssl=not no_verify_ssl,
    )
    if len(cfg.profiles) == 1:
        cfg.default_profile = profile

    cfg.save(CONFIG_FILE)

    print_success(f"Configuration saved to {CONFIG_FILE}")
    print_key_value(
        {
            "profile": profile,
            "url": url,
            "default_album": album or "-",
            "max_upload_mb": max_upload_mb,
            "allow_videos": not no_videos,
        }
    )


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show the current configuration."""
    try:
        cfg = Config.load(CONFIG_FILE)
    except AlbumCtlError as e:
        print_error(str(e))
        raise SystemExit(1) from e

    data = {
        "config_file": str(CONFIG_FILE),
        "default_profile": cfg.default_profile,
        "profiles": list(cfg.profiles.keys()),
    }

    if output == "json":
        data["profile_details"] = {name: p.to_dict() for name, p in cfg.profiles.items()}
        print_output(data, format=OutputFormat.JSON)
        return

    print_key_value(data, title="Configuration")
    click.echo()
    for name, profile in cfg.profiles.items():
        marker = " (default)" if name == cfg.default_profile else ""
        click.echo(f"Profile: {name}{marker}")
        print_key_value(
            {
                "url": profile.url,
                "verify_ssl": profile.verify_ssl,
                "timeout": f"{profile.timeout}s",
                "upload_timeout": f"{profile.upload_timeout}s",
                "refresh_interval": f"{profile.refresh_interval}s",
                "max_upload_mb": profile.max_upload_mb,
                "allow_videos": profile.allow_videos,
                "default_album": profile.default_album or "-",
            }
        )
        click.echo()
