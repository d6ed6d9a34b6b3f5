"""Authentication commands for albumctl."""

from __future__ import annotations

from typing import Optional

import click

from albumctl.cli.common import Context, global_options, handle_errors, require_auth
from albumctl.core.config import get_credentials
from albumctl.core.output import OutputFormat, print_json, print_key_value, print_success, print_warning


@click.group()
def auth() -> None:
    """Manage the signed-in session."""
    pass


@auth.command("login")
@click.option("--email", "-e", help="Account email")
@click.option("--password", help="Password (will prompt if not provided)")
@global_options
@handle_errors
def auth_login(ctx: Context, email: Optional[str], password: Optional[str]) -> None:
    """Sign in and cache the session.

    Credentials come from the options, then ALBUM_EMAIL/ALBUM_PASSWORD, then
    a prompt.

    Example:
        albumctl auth login
        albumctl auth login -e me@example.org
    """
    env_email, env_password = get_credentials()
    email = email or env_email or click.prompt("Email")
    password = password or env_password or click.prompt("Password", hide_input=True)

    client = ctx.get_client()
    if ctx.output_format == OutputFormat.TABLE and not ctx.quiet:
        click.echo(f"Signing in to {client.base_url}...")

    user = ctx.run(lambda api: api.login(email, password))
    info = ctx.session_manager.get_session_info() or {}

    if ctx.output_format == OutputFormat.JSON:
        print_json(
            {
                "status": "authenticated",
                "email": user.email,
                "name": user.display_name,
                "url": client.base_url,
                "expires_at": info.get("expires_at"),
            }
        )
    elif ctx.quiet:
        click.echo(user.id)
    else:
        print_success(f"Logged in as {user.display_name}")


@auth.command("logout")
@global_options
@handle_errors
def auth_logout(ctx: Context) -> None:
    """Sign out on the server and clear the cached session.

    Example:
        albumctl auth logout
    """
    client = ctx.get_client()
    if not client.has_session:
        ctx.session_manager.clear()
        print_warning("No cached session found")
        return

    ctx.run(lambda api: api.logout())
    print_success("Logged out")


@auth.command("status")
@global_options
@handle_errors
def auth_status(ctx: Context) -> None:
    """Show the cached session for the active profile.

    Example:
        albumctl auth status -o json
    """
    profile = ctx.get_profile()
    info = ctx.session_manager.get_session_info()
    env_email, env_password = get_credentials()

    status = {
        "url": profile.url,
        "env_email": env_email or "(not set)",
        "env_password": "(set)" if env_password else "(not set)",
        "session_cached": info is not None and info["url"] == profile.url,
    }
    if status["session_cached"]:
        status.update(
            {
                "session_user": info["username"],
                "session_created": info["created_at"],
                "session_expires": info["expires_at"],
                "session_expired": info["is_expired"],
            }
        )

    if ctx.output_format == OutputFormat.JSON:
        print_json(status)
    else:
        print_key_value(status, title=f"Auth Status: {ctx.profile_name or ctx.config.default_profile}")


@auth.command("refresh")
@global_options
@require_auth
@handle_errors
def auth_refresh(ctx: Context) -> None:
    """Refresh the session cookies now.

    Example:
        albumctl auth refresh
    """
    ctx.run(lambda api: api.refresh_session())
    print_success("Session refreshed")
