"""Common CLI utilities, decorators, and helpers."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import click
import httpx

from albumctl.core.auth import SessionManager
from albumctl.core.client import ApiClient
from albumctl.core.config import Config, Profile
from albumctl.core.exceptions import (
    AlbumCtlError,
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    ProfileNotFoundError,
)
from albumctl.core.logging import setup_logging
from albumctl.core.navigation import Navigator
from albumctl.core.output import OutputFormat, print_error, print_warning

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")


class CliNavigator(Navigator):
    """Navigator for a terminal: there is no sign-in page to open, so say how to get one."""

    def redirect_to_sign_in(self) -> bool:
        redirected = super().redirect_to_sign_in()
        if redirected:
            print_warning("Session expired. Run 'albumctl auth login' to sign in again.")
        return redirected


# =============================================================================
# Context Object
# =============================================================================


class Context:
    """CLI context object passed to commands."""

    def __init__(
        self,
        session_manager: Optional[SessionManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config: Optional[Config] = None
        self.client: Optional[ApiClient] = None
        self.profile_name: Optional[str] = None
        self.output_format: OutputFormat = OutputFormat.TABLE
        self.quiet: bool = False
        self.verbose: bool = False
        self.session_manager: SessionManager = session_manager or SessionManager()
        self.transport = transport

    def get_profile(self) -> Profile:
        """Resolve the active profile.

        Raises:
            ConfigurationError: If the profile does not exist.
        """
        if self.config is None:
            self.config = Config.load()

        try:
            return self.config.get_profile(self.profile_name)
        except ProfileNotFoundError as e:
            raise ConfigurationError(
                f"Profile '{self.profile_name or self.config.default_profile}' not found. "
                "Run 'albumctl config init' to create one."
            ) from e

    def get_client(self) -> ApiClient:
        """Get or create the API client for the active profile.

        The client shares this context's session manager, so a session marker
        written by ``auth login`` is seen by later commands.
        """
        if self.client is not None:
            return self.client

        profile = self.get_profile()
        self.client = ApiClient(
            base_url=profile.url,
            timeout=profile.timeout,
            upload_timeout=profile.upload_timeout,
            verify_ssl=profile.verify_ssl,
            refresh_interval=profile.refresh_interval,
            session=self.session_manager,
            navigator=CliNavigator(),
            transport=self.transport,
        )
        return self.client

    def run(self, operation: Callable[[ApiClient], Awaitable[T]]) -> T:
        """Run an async operation against the client on a fresh event loop."""
        client = self.get_client()

        async def _main() -> T:
            try:
                return await operation(client)
            finally:
                await client.aclose()

        return asyncio.run(_main())


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Global Options
# =============================================================================


def global_options(f: F) -> F:
    """Add global options to a command."""

    @click.option(
        "--profile",
        "-p",
        envvar="ALBUM_PROFILE",
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
        help="Minimal output (IDs only)",
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
        ctx.profile_name = profile
        ctx.output_format = OutputFormat.from_string(output_format)
        ctx.quiet = quiet
        ctx.verbose = verbose

        setup_logging(quiet=quiet, verbose=verbose)
        ctx.config = Config.load()

        return f(ctx, *args, **kwargs)

    return wrapper  # type: ignore


# =============================================================================
# Authentication Decorators
# =============================================================================


def require_auth(f: F) -> F:
    """Refuse to run unless a session marker exists for the active profile."""

    @wraps(f)
    def wrapper(ctx: Context, *args: Any, **kwargs: Any) -> Any:
        client = ctx.get_client()
        if not client.has_session:
            print_error("Not authenticated. Run 'albumctl auth login' first.")
            sys.exit(ExitCode.AUTH_ERROR)
        return f(ctx, *args, **kwargs)

    return wrapper  # type: ignore


# =============================================================================
# Error Handling
# =============================================================================


def handle_errors(f: F) -> F:
    """Turn albumctl errors into an error line and an exit code."""

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except AuthenticationError as e:
            print_error(str(e))
            sys.exit(ExitCode.AUTH_ERROR)
        except ConnectionError as e:
            print_error(str(e))
            sys.exit(ExitCode.NETWORK_ERROR)
        except AlbumCtlError as e:
            print_error(str(e))
            sys.exit(ExitCode.GENERAL_ERROR)
        except click.ClickException:
            raise
        except Exception as e:
            print_error(f"Unexpected error: {e}")
            sys.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore


# =============================================================================
# Exit Codes
# =============================================================================


class ExitCode:
    """Standard exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    NETWORK_ERROR = 3
    USER_CANCELLED = 5
