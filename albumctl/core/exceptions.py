"""Exception hierarchy for albumctl.

Provides typed exceptions for different failure modes with clear error messages.
"""

from __future__ import annotations

from typing import Any


class AlbumCtlError(Exception):
    """Base exception for all albumctl errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AlbumCtlError):
    """Error in configuration (missing, invalid, or malformed)."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ProfileNotFoundError(ConfigurationError):
    """Requested profile does not exist."""

    def __init__(self, profile: str):
        super().__init__(f"Profile not found: {profile}", field="profile", value=profile)
        self.profile = profile


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(AlbumCtlError):
    """Input validation failed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidURLError(ValidationError):
    """Invalid URL format."""

    def __init__(self, url: str, reason: str = ""):
        msg = f"Invalid URL: {url}"
        if reason:
            msg = f"{msg} - {reason}"
        super().__init__(msg, field="url", value=url)
        self.url = url
        self.reason = reason


class FileValidationError(ValidationError):
    """A file failed the pre-flight upload checks."""

    def __init__(self, file_name: str, reason: str):
        super().__init__(reason, field="file", value=file_name)
        self.file_name = file_name
        self.reason = reason

    def __str__(self) -> str:
        return self.reason


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(AlbumCtlError):
    """Base class for connection-related errors."""

    def __init__(self, message: str, url: str | None = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)
        self.url = url


class NetworkError(ConnectionError):
    """Network-level error (DNS, TCP, TLS, timeouts)."""

    def __init__(self, url: str, cause: str | None = None):
        msg = f"Network error connecting to {url}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, url)
        self.cause = cause


class ServerUnreachableError(ConnectionError):
    """Server is not reachable."""

    def __init__(self, url: str):
        super().__init__(f"Server unreachable: {url}", url)


# =============================================================================
# API Errors
# =============================================================================


class ApiError(AlbumCtlError):
    """The API answered with an error status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        code: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ):
        details: dict[str, Any] = {"status_code": status_code}
        if code:
            details["code"] = code
        if method:
            details["method"] = method
        if path:
            details["path"] = path
        super().__init__(message, details)
        self.status_code = status_code
        self.code = code
        self.method = method
        self.path = path


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationError(AlbumCtlError):
    """Authentication failed."""

    def __init__(
        self,
        url: str | None = None,
        reason: str = "",
        details: dict[str, Any] | None = None,
    ):
        msg = "Authentication failed"
        if url:
            msg = f"{msg} for {url}"
        if reason:
            msg = f"{msg}: {reason}"
        merged: dict[str, Any] = {"url": url} if url else {}
        if details:
            merged.update(details)
        super().__init__(msg, merged)
        self.url = url
        self.reason = reason

    @property
    def status_code(self) -> int | None:
        return self.details.get("status_code")


class SessionExpiredError(AuthenticationError):
    """Session has expired and could not be repaired for this request."""

    def __init__(self, url: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(url, "Session expired - please login again", details)


class RefreshFailedError(AuthenticationError):
    """The session refresh call failed; the session is gone."""

    def __init__(
        self,
        url: str | None = None,
        status_code: int | None = None,
        cause: str = "",
    ):
        reason = "Session refresh failed"
        if cause:
            reason = f"{reason}: {cause}"
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(url, reason, details)


# =============================================================================
# Operation Errors
# =============================================================================


class OperationError(AlbumCtlError):
    """Error during an operation."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        full_details = {"operation": operation}
        if details:
            full_details.update(details)
        super().__init__(message, full_details)
        self.operation = operation


class UploadError(OperationError):
    """Error during upload."""

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        full_details = details or {}
        if file_name:
            full_details["file"] = file_name
        super().__init__("upload", message, full_details)
        self.file_name = file_name


class TransferError(UploadError):
    """Moving bytes to the storage provider failed."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {"provider": provider}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details)
        self.provider = provider
        self.status_code = status_code


class ConfirmError(UploadError):
    """The server rejected or never acknowledged the upload confirmation."""

    def __init__(self, media_id: str, cause: str = ""):
        msg = f"Failed to confirm upload {media_id}"
        if cause:
            msg = f"{msg}: {cause}"
        super().__init__(msg, details={"media_id": media_id})
        self.media_id = media_id


class UnsupportedProviderError(UploadError):
    """No transfer adapter is registered for the server's provider."""

    def __init__(self, provider: str):
        super().__init__(f"Unsupported storage provider: {provider!r}")
        self.provider = provider


class InvalidTransitionError(OperationError):
    """An upload session was asked to move to a phase it cannot reach."""

    def __init__(self, current: str, target: str):
        super().__init__(
            "upload",
            f"Cannot move upload session from {current} to {target}",
            {"from": current, "to": target},
        )
        self.current = current
        self.target = target
