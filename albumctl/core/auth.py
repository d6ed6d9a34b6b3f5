"""Session presence markers for albumctl.

The server keeps the real credentials in cookies. The client only tracks
whether it believes a session exists, plus a copy of the cookies and an
optional access-token copy used for expiry hints. The marker is held in
memory and mirrored to a cache file so the CLI survives between invocations.
"""

from __future__ import annotations

import json
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from albumctl.core.config import DEVICE_ID_FILE, SESSION_CACHE_FILE
from albumctl.core.logging import get_logger
from albumctl.core.tokens import decode_token

logger = get_logger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"


# =============================================================================
# Session Cache
# =============================================================================


@dataclass
class CachedSession:
    """Cached session marker with metadata."""

    url: str
    username: str
    created_at: datetime
    cookies: dict[str, str] = field(default_factory=dict)
    access_token: str | None = None

    @property
    def expires_at(self) -> datetime | None:
        """Expiry decoded from the access-token copy, if any."""
        if not self.access_token:
            return None
        payload = decode_token(self.access_token)
        if not payload or not isinstance(payload.get("exp"), (int, float)):
            return None
        return datetime.fromtimestamp(payload["exp"])

    def is_expired(self) -> bool:
        """Check the expiry hint; sessions with no hint are not expired."""
        expires = self.expires_at
        if expires:
            return datetime.now() >= expires
        return False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "username": self.username,
            "created_at": self.created_at.isoformat(),
            "cookies": dict(self.cookies),
            "access_token": self.access_token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CachedSession:
        """Create from dictionary."""
        return cls(
            url=data["url"],
            username=data["username"],
            created_at=datetime.fromisoformat(data["created_at"]),
            cookies=dict(data.get("cookies") or {}),
            access_token=data.get("access_token"),
        )


# =============================================================================
# SessionManager
# =============================================================================


class SessionManager:
    """Owns the process-wide "we are signed in" marker.

    Written only by login, logout and refresh outcomes; read by every
    pipeline call and by the refresh monitor.
    """

    def __init__(
        self,
        cache_file: Path | None = None,
        device_id_file: Path | None = None,
        *,
        persist: bool = True,
    ):
        """Initialize the session manager.

        Args:
            cache_file: Path to session cache file.
            device_id_file: Path where the anonymous device id is kept.
            persist: If False, the marker lives in memory only.
        """
        self.cache_file = cache_file or SESSION_CACHE_FILE
        self.device_id_file = device_id_file or DEVICE_ID_FILE
        self.persist = persist
        self._session: CachedSession | None = None
        self._loaded = not persist
        self._device_id: str | None = None

    # =========================================================================
    # Presence
    # =========================================================================

    @property
    def session(self) -> CachedSession | None:
        if not self._loaded:
            self._session = self._read_cache()
            self._loaded = True
        return self._session

    def is_authenticated(self, url: str | None = None) -> bool:
        """Return True if a session marker exists (for ``url`` when given)."""
        session = self.session
        if session is None:
            return False
        return url is None or session.url == url

    def mark_authenticated(
        self,
        url: str,
        username: str,
        cookies: dict[str, str] | None = None,
    ) -> CachedSession:
        """Set the marker after a successful login or registration."""
        cookies = dict(cookies or {})
        self._session = CachedSession(
            url=url,
            username=username,
            created_at=datetime.now(),
            cookies=cookies,
            access_token=cookies.get(ACCESS_TOKEN_COOKIE),
        )
        self._loaded = True
        self._write_cache()
        return self._session

    def update_cookies(self, cookies: dict[str, str]) -> None:
        """Record rotated cookies after a successful refresh."""
        session = self.session
        if session is None:
            return
        session.cookies.update(cookies)
        session.access_token = session.cookies.get(ACCESS_TOKEN_COOKIE, session.access_token)
        self._write_cache()

    def clear(self) -> bool:
        """Drop the marker in memory and on disk.

        Returns:
            True if a marker existed.
        """
        existed = self.session is not None
        self._session = None
        self._loaded = True
        if self.persist and self.cache_file.exists():
            try:
                self.cache_file.unlink()
            except OSError as e:
                logger.warning("Could not remove session cache %s: %s", self.cache_file, e)
        return existed

    def get_session_info(self) -> dict[str, Any] | None:
        """Get session information for display."""
        session = self.session
        if not session:
            return None

        expires = session.expires_at
        return {
            "url": session.url,
            "username": session.username,
            "created_at": session.created_at.isoformat(),
            "expires_at": expires.isoformat() if expires else None,
            "is_expired": session.is_expired(),
        }

    # =========================================================================
    # Device Identity
    # =========================================================================

    def get_device_id(self) -> str:
        """Return the anonymous device id, generating and persisting it once."""
        if self._device_id:
            return self._device_id

        if self.persist and self.device_id_file.exists():
            stored = self.device_id_file.read_text().strip()
            if stored:
                self._device_id = stored
                return stored

        self._device_id = str(uuid.uuid4())
        if self.persist:
            self.device_id_file.parent.mkdir(parents=True, exist_ok=True)
            self.device_id_file.write_text(self._device_id)
        return self._device_id

    # =========================================================================
    # Cache File
    # =========================================================================

    def _read_cache(self) -> CachedSession | None:
        if not self.cache_file.exists():
            return None

        try:
            with open(self.cache_file) as f:
                return CachedSession.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, ValueError, TypeError):
            logger.warning("Discarding unreadable session cache %s", self.cache_file)
            try:
                self.cache_file.unlink()
            except OSError:
                pass
            return None

    def _write_cache(self) -> None:
        if not self.persist or self._session is None:
            return

        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.cache_file, "w") as f:
            json.dump(self._session.to_dict(), f)

        # Owner read/write only
        try:
            os.chmod(self.cache_file, 0o600)
        except OSError:
            pass
