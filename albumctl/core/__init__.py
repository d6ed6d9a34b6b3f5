"""Core modules for albumctl."""

from albumctl.core.auth import CachedSession, SessionManager
from albumctl.core.client import ApiClient
from albumctl.core.config import CONFIG_DIR, CONFIG_FILE, Config, Profile
from albumctl.core.exceptions import (
    AlbumCtlError,
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    InvalidTransitionError,
    NetworkError,
    OperationError,
    RefreshFailedError,
    SessionExpiredError,
    TransferError,
    UploadError,
    ValidationError,
)
from albumctl.core.logging import LogContext, get_logger, setup_logging
from albumctl.core.navigation import Navigator
from albumctl.core.output import (
    OutputFormat,
    console,
    print_error,
    print_json,
    print_output,
    print_success,
    print_warning,
)
from albumctl.core.refresh import RefreshCoordinator, RefreshMonitor

__all__ = [
    # Exceptions
    "AlbumCtlError",
    "ApiError",
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "SessionExpiredError",
    "RefreshFailedError",
    "ValidationError",
    "OperationError",
    "UploadError",
    "TransferError",
    "InvalidTransitionError",
    # Config
    "Config",
    "Profile",
    "CONFIG_DIR",
    "CONFIG_FILE",
    # Client
    "ApiClient",
    "RefreshCoordinator",
    "RefreshMonitor",
    "Navigator",
    # Auth
    "CachedSession",
    "SessionManager",
    # Output
    "OutputFormat",
    "print_output",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "console",
    # Logging
    "get_logger",
    "setup_logging",
    "LogContext",
]
