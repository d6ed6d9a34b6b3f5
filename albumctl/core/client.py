"""Async HTTP client for the album REST API.

Every request carries the session cookies. A 401 from a protected endpoint is
repaired transparently: one shared refresh, then exactly one retry of the
original request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from albumctl.core.auth import SessionManager
from albumctl.core.config import (
    DEFAULT_API_URL,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_TIMEOUT,
    DEFAULT_UPLOAD_TIMEOUT,
    validate_api_url,
)
from albumctl.core.exceptions import (
    AlbumCtlError,
    ApiError,
    AuthenticationError,
    ConfirmError,
    NetworkError,
    RefreshFailedError,
    ServerUnreachableError,
    SessionExpiredError,
)
from albumctl.core.logging import get_logger
from albumctl.core.navigation import Navigator
from albumctl.core.refresh import SESSION_GONE_STATUSES, RefreshCoordinator, RefreshMonitor
from albumctl.models.base import Envelope
from albumctl.models.media import UploadTarget, User

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

LOGIN_PATH = "/auth/login"
REGISTER_PATH = "/auth/register"
REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"
AUTH_ENDPOINTS = (LOGIN_PATH, REGISTER_PATH, REFRESH_PATH, LOGOUT_PATH)

LOCAL_UPLOAD_PATH = "/media/upload/local"

SESSION_TOKEN_HEADER = "x-session-token"
DEVICE_ID_HEADER = "x-device-id"


def is_auth_endpoint(path: str) -> bool:
    """Return True for the endpoints that must never trigger a refresh."""
    return any(endpoint in path for endpoint in AUTH_ENDPOINTS)


def _envelope(resp: httpx.Response) -> Envelope | None:
    try:
        return Envelope.model_validate(resp.json())
    except ValueError:
        return None


def error_message(resp: httpx.Response) -> str:
    """Extract the server's human-readable error message."""
    envelope = _envelope(resp)
    if envelope is not None and envelope.error_message:
        return envelope.error_message
    return f"HTTP {resp.status_code}"


def _error_code(resp: httpx.Response) -> str | None:
    envelope = _envelope(resp)
    return envelope.error_code if envelope is not None else None


# =============================================================================
# ApiClient
# =============================================================================


@dataclass
class ApiClient:
    """Authenticated request pipeline for the album API."""

    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT
    verify_ssl: bool = True
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    session: SessionManager = field(default_factory=lambda: SessionManager(persist=False))
    navigator: Navigator = field(default_factory=Navigator)
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient | None = field(init=False, default=None, repr=False)
    _storage_client: httpx.AsyncClient | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate the URL and wire up refresh coordination."""
        self.base_url = validate_api_url(self.base_url)
        self.coordinator = RefreshCoordinator(self._refresh_call)
        self.monitor = RefreshMonitor(
            self._proactive_refresh,
            lambda: self.has_session,
            interval=self.refresh_interval,
        )

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the API client, seeded with cached cookies."""
        if self._client is None:
            cached = self.session.session
            cookies = cached.cookies if cached and cached.url == self.base_url else None
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
                cookies=cookies,
                transport=self.transport,
            )
        return self._client

    def storage_client(self) -> httpx.AsyncClient:
        """Client for storage backends: no base URL, no API cookies."""
        if self._storage_client is None:
            self._storage_client = httpx.AsyncClient(
                timeout=self.upload_timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._storage_client

    async def aclose(self) -> None:
        """Stop the refresh monitor and close HTTP clients."""
        self.monitor.stop()
        for client in (self._client, self._storage_client):
            if client is not None:
                await client.aclose()
        self._client = None
        self._storage_client = None

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def url_for(self, path: str) -> str:
        """Absolute URL of an API path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    # =========================================================================
    # Session State
    # =========================================================================

    @property
    def has_session(self) -> bool:
        """Whether a session marker exists for this server."""
        return self.session.is_authenticated(self.base_url)

    def _remember_session(self, user: User) -> None:
        client = self._get_client()
        self.session.mark_authenticated(self.base_url, user.email, dict(client.cookies))

    def _session_lost(self) -> None:
        """Unrecoverable loss: clear markers, stop the monitor, go to sign-in."""
        self.session.clear()
        self.monitor.stop()
        if self._client is not None:
            self._client.cookies.clear()
        self.navigator.redirect_to_sign_in()

    # =========================================================================
    # Refresh
    # =========================================================================

    async def _refresh_call(self) -> None:
        """Issue exactly one refresh call. Driven by the coordinator only."""
        client = self._get_client()
        try:
            resp = await client.post(REFRESH_PATH)
        except httpx.ConnectError as e:
            raise ServerUnreachableError(self.base_url) from e
        except httpx.HTTPError as e:
            raise NetworkError(self.base_url, str(e)) from e

        if resp.is_error:
            logger.warning("Session refresh rejected with HTTP %d", resp.status_code)
            raise RefreshFailedError(self.base_url, resp.status_code, error_message(resp))

        self.session.update_cookies(dict(client.cookies))
        logger.debug("Session refreshed")

    async def refresh_session(self) -> None:
        """Refresh the session, joining any refresh already in flight.

        Any failure ends the session: markers and cookies are cleared, the
        monitor stops and the navigator goes to sign-in.
        """
        try:
            await self.coordinator.acquire_refresh()
        except AlbumCtlError:
            self._session_lost()
            raise

    async def _proactive_refresh(self) -> None:
        """Monitor tick. Only a 400/401 from the refresh endpoint ends the session."""
        try:
            await self.coordinator.acquire_refresh()
        except RefreshFailedError as e:
            if e.status_code in SESSION_GONE_STATUSES:
                self._session_lost()
            raise

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    async def _dispatch(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._get_client()
        try:
            return await client.request(method, path, **kwargs)
        except httpx.ConnectError as e:
            raise ServerUnreachableError(self.base_url) from e
        except httpx.TimeoutException as e:
            raise NetworkError(self.base_url, f"Timeout: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(self.base_url, str(e)) from e

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        files: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute a request, repairing an expired session at most once.

        Args:
            method: HTTP method.
            path: API path relative to the base URL.
            params: Query parameters.
            json: JSON body.
            data: Form data.
            files: Multipart files. Must be re-sendable (bytes, not streams).
            headers: Additional headers.

        Returns:
            HTTP response with a 2xx/3xx status.

        Raises:
            AuthenticationError: 401 from an auth endpoint.
            SessionExpiredError: 401 with no session, or 401 again after refresh.
            RefreshFailedError: The refresh itself was rejected.
            ApiError: Any other error status.
            NetworkError: Transport failure.
        """
        kwargs: dict[str, Any] = {
            "params": params,
            "json": json,
            "data": data,
            "files": files,
            "headers": headers,
        }
        kwargs = {k: v for k, v in kwargs.items() if v is not None}

        resp = await self._dispatch(method, path, **kwargs)
        if resp.status_code == 401:
            if is_auth_endpoint(path):
                raise AuthenticationError(
                    self.base_url, error_message(resp), self._details(resp, method, path)
                )

            if not self.has_session:
                # Anonymous caller: nothing to repair
                self.session.clear()
                self.monitor.stop()
                raise SessionExpiredError(self.base_url, self._details(resp, method, path))

            await self.refresh_session()

            resp = await self._dispatch(method, path, **kwargs)
            if resp.status_code == 401:
                raise SessionExpiredError(self.base_url, self._details(resp, method, path))

        if resp.is_error:
            raise ApiError(
                resp.status_code,
                error_message(resp),
                code=_error_code(resp),
                method=method,
                path=path,
            )
        return resp

    def _details(self, resp: httpx.Response, method: str, path: str) -> dict[str, Any]:
        return {"status_code": resp.status_code, "method": method, "path": path}

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """POST request."""
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        """PUT request."""
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """DELETE request."""
        return await self.request("DELETE", path, **kwargs)

    @staticmethod
    def data(resp: httpx.Response) -> Any:
        """Unwrap the ``{"success": ..., "data": ...}`` envelope."""
        payload = resp.json()
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self, email: str, password: str) -> User:
        """Sign in, set the session marker and start the refresh monitor."""
        resp = await self.post(LOGIN_PATH, json={"email": email, "password": password})
        user = User.model_validate(self.data(resp)["user"])
        self._remember_session(user)
        self.monitor.start()
        return user

    async def register(
        self,
        email: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create an account; the server signs the new user in."""
        body: dict[str, Any] = {"email": email, "password": password}
        if first_name:
            body["firstName"] = first_name
        if last_name:
            body["lastName"] = last_name

        resp = await self.post(REGISTER_PATH, json=body)
        user = User.model_validate(self.data(resp)["user"])
        self._remember_session(user)
        self.monitor.start()
        return user

    async def logout(self) -> None:
        """Sign out on the server (best effort) and always clear local markers."""
        try:
            await self.post(LOGOUT_PATH)
        except AlbumCtlError as e:
            logger.warning("Server logout failed: %s", e)
        finally:
            self.session.clear()
            self.monitor.stop()
            if self._client is not None:
                self._client.cookies.clear()

    async def me(self) -> User:
        """Fetch the signed-in user."""
        resp = await self.get("/users/me")
        return User.model_validate(self.data(resp)["user"])

    # =========================================================================
    # Media
    # =========================================================================

    async def initiate_upload(
        self,
        album_id: str,
        file_name: str,
        file_type: str,
        file_size: int,
    ) -> UploadTarget:
        """Create a server-side media placeholder and get the upload target."""
        resp = await self.post(
            "/media/initiate",
            json={
                "albumId": album_id,
                "fileName": file_name,
                "fileType": file_type,
                "fileSize": file_size,
            },
        )
        return UploadTarget.model_validate(self.data(resp))

    async def initiate_public_upload(
        self,
        album_identifier: str,
        file_name: str,
        file_type: str,
        file_size: int,
        *,
        session_token: str | None = None,
        contributor_name: str | None = None,
    ) -> UploadTarget:
        """Create a placeholder in a public album (no signed-in user needed)."""
        body: dict[str, Any] = {
            "fileName": file_name,
            "fileType": file_type,
            "fileSize": file_size,
        }
        if contributor_name:
            body["contributorName"] = contributor_name

        resp = await self.post(
            f"/public/album/{album_identifier}/upload",
            json=body,
            headers=self.public_headers(session_token),
        )
        target = UploadTarget.model_validate(self.data(resp))
        if not target.upload_url:
            target.upload_url = self.url_for(LOCAL_UPLOAD_PATH)
        return target

    async def confirm_upload(self, media_id: str, payload: dict[str, Any] | None = None) -> Any:
        """Tell the server the bytes have landed.

        Raises:
            ConfirmError: The server rejected the confirmation or never answered.
        """
        try:
            resp = await self.post(f"/media/{media_id}/confirm", json=payload)
        except (ApiError, NetworkError, ServerUnreachableError) as e:
            raise ConfirmError(media_id, e.message) from e
        return self.data(resp)

    async def cancel_upload(self, media_id: str) -> None:
        """Release a media placeholder."""
        await self.post(f"/media/{media_id}/cancel")

    def public_headers(self, session_token: str | None = None) -> dict[str, str]:
        """Headers for public album calls: access session and device id."""
        headers = {DEVICE_ID_HEADER: self.session.get_device_id()}
        if session_token:
            headers[SESSION_TOKEN_HEADER] = session_token
        return headers
