"""Main CLI entry point for albumctl."""

from __future__ import annotations

import click

from albumctl import __version__
from albumctl.cli.auth import auth
from albumctl.cli.config_cmd import config
from albumctl.cli.media import media


@click.group()
@click.version_option(version=__version__, prog_name="albumctl")
def cli() -> None:
    """albumctl - command line client for the album API.

    Get started:

      albumctl config init        # Point at a server

      albumctl auth login         # Sign in

      albumctl media upload IMG.jpg --album 42

    Use --help on any command for more information.
    """
    pass


cli.add_command(config)
cli.add_command(auth)
cli.add_command(media)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
