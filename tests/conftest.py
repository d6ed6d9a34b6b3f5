"""Pytest configuration and fixtures for albumctl tests."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest

from albumctl.core.auth import SessionManager
from albumctl.core.client import ApiClient
from albumctl.core.logging import ROOT_LOGGER_NAME

BASE_URL = "https://photos.example.org/api/v1"
STORAGE_URL = "https://storage.example.net"


def make_token(payload: dict[str, Any]) -> str:
    """Build an unsigned JWT-shaped token around ``payload``."""

    def segment(data: dict[str, Any]) -> str:
        raw = base64.urlsafe_b64encode(json.dumps(data).encode()).decode()
        return raw.rstrip("=")

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(payload)}.signature"


def envelope(data: Any, status_code: int = 200, **kwargs: Any) -> httpx.Response:
    """API success response."""
    return httpx.Response(status_code, json={"success": True, "data": data}, **kwargs)


def api_error(status_code: int, message: str, code: str = "ERROR") -> httpx.Response:
    """API error response."""
    return httpx.Response(
        status_code,
        json={"success": False, "error": {"code": code, "message": message}},
    )


class Recorder:
    """MockTransport handler wrapper that keeps every request it sees."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if not isinstance(result, httpx.Response):
            result = await result
        return result

    def calls(self, method: str, path_suffix: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path.endswith(path_suffix)
        ]

    def count(self, method: str, path_suffix: str) -> int:
        return len(self.calls(method, path_suffix))


def make_client(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> tuple[ApiClient, Recorder]:
    """ApiClient wired to a recording MockTransport."""
    recorder = Recorder(handler)
    client = ApiClient(base_url=BASE_URL, transport=httpx.MockTransport(recorder), **kwargs)
    return client, recorder


def sign_in(client: ApiClient, email: str = "me@example.org") -> None:
    """Set the session marker as a successful login would."""
    client.session.mark_authenticated(client.base_url, email)


class FakeAlbumServer:
    """Album API plus storage backends behind one MockTransport."""

    def __init__(
        self,
        provider: str = "local",
        *,
        initiate_status: int = 200,
        transfer_status: int = 200,
        confirm_status: int = 200,
        cancel_status: int = 200,
    ):
        self.provider = provider
        self.initiate_status = initiate_status
        self.transfer_status = transfer_status
        self.confirm_status = confirm_status
        self.cancel_status = cancel_status
        self.gates: dict[str, asyncio.Event] = {}
        self.reached: dict[str, asyncio.Event] = {}

    def gate(self, step: str) -> None:
        """Hold ``step`` until :meth:`open` is called. Call inside the event loop."""
        self.gates[step] = asyncio.Event()
        self.reached[step] = asyncio.Event()

    def open(self, step: str) -> None:
        self.gates[step].set()

    async def _hold(self, step: str) -> None:
        if step in self.gates:
            self.reached[step].set()
            await self.gates[step].wait()

    def _upload_url(self) -> str:
        if self.provider == "s3":
            return f"{STORAGE_URL}/bucket/m1?X-Amz-Signature=s"
        if self.provider == "cloudinary":
            return f"{STORAGE_URL}/v1_1/demo/auto/upload?api_key=1&upload_preset=p&signature=s"
        return f"{BASE_URL}/media/upload/local?key=m1"

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/media/initiate") or path.endswith("/upload") and "/public/album/" in path:
            await self._hold("initiate")
            if self.initiate_status >= 400:
                return api_error(self.initiate_status, "Album is full")
            return envelope(
                {
                    "media": {"id": "m1", "albumId": "a1", "status": "PENDING"},
                    "uploadUrl": self._upload_url(),
                    "providerType": self.provider,
                }
            )
        if path.endswith("/confirm"):
            await self._hold("confirm")
            if self.confirm_status >= 400:
                return api_error(self.confirm_status, "Confirm failed")
            return envelope({"id": "m1", "status": "READY"})
        if path.endswith("/cancel"):
            if self.cancel_status >= 400:
                return api_error(self.cancel_status, "Cancel failed")
            return envelope(None)

        # storage
        await self._hold("transfer")
        if self.transfer_status >= 400:
            return httpx.Response(self.transfer_status)
        if self.provider == "cloudinary":
            return httpx.Response(200, json={"public_id": "albums/m1"})
        return httpx.Response(200, json={"success": True})


@pytest.fixture(autouse=True)
def reset_albumctl_logging() -> Generator[None, None, None]:
    """Drop handlers the CLI installs so they never outlive a CliRunner stream."""
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def session_manager(temp_dir: Path) -> SessionManager:
    """Persisting session manager writing under a temp dir."""
    return SessionManager(
        cache_file=temp_dir / ".session",
        device_id_file=temp_dir / "device_id",
    )


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://photos-test.example.org/api/v1
    verify_ssl: false
    timeout: 30
    max_upload_mb: 50
    allow_videos: false
    default_album: album-1

  production:
    url: https://photos.example.org/api/v1
    verify_ssl: true
    timeout: 60
"""
