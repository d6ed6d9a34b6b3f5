"""albumctl - client network layer and CLI for a photo album service.

This package provides:
- An authenticated async request pipeline with single-flight session refresh
- A proactive refresh monitor that keeps a signed-in session warm
- An upload state machine that drives media through initiate, transfer and
  confirm against pluggable storage providers
"""

__version__ = "0.1.0"

from albumctl.core.client import ApiClient
from albumctl.core.config import Config, Profile
from albumctl.core.exceptions import (
    AlbumCtlError,
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    NetworkError,
    SessionExpiredError,
    UploadError,
    ValidationError,
)

__all__ = [
    "__version__",
    "ApiClient",
    "Config",
    "Profile",
    "AlbumCtlError",
    "ApiError",
    "AuthenticationError",
    "ConfigurationError",
    "ConnectionError",
    "NetworkError",
    "SessionExpiredError",
    "UploadError",
    "ValidationError",
]
