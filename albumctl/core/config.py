"""Configuration management for albumctl.

Supports YAML profiles and environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml

from albumctl.core.exceptions import ConfigurationError, InvalidURLError, ProfileNotFoundError

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "albumctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
SESSION_CACHE_FILE = CONFIG_DIR / ".session"
DEVICE_ID_FILE = CONFIG_DIR / "device_id"

DEFAULT_API_URL = "http://localhost:30700/api/v1"
DEFAULT_TIMEOUT = 30
DEFAULT_UPLOAD_TIMEOUT = 600
DEFAULT_REFRESH_INTERVAL = 120
DEFAULT_MAX_UPLOAD_MB = 100

# Environment variable names
ENV_URL = "ALBUM_API_URL"
ENV_EMAIL = "ALBUM_EMAIL"
ENV_PASSWORD = "ALBUM_PASSWORD"
ENV_PROFILE = "ALBUM_PROFILE"
ENV_VERIFY_SSL = "ALBUM_VERIFY_SSL"
ENV_TIMEOUT = "ALBUM_TIMEOUT"


def validate_api_url(url: str) -> str:
    """Normalize an API base URL.

    Raises:
        InvalidURLError: If the URL is not http(s) or has no host.
    """
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parsed.netloc:
        raise InvalidURLError(url, "missing host")
    return url.rstrip("/")


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Configuration profile for an album API server."""

    url: str = DEFAULT_API_URL
    verify_ssl: bool = True
    timeout: int = DEFAULT_TIMEOUT
    upload_timeout: int = DEFAULT_UPLOAD_TIMEOUT
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    max_upload_mb: float = DEFAULT_MAX_UPLOAD_MB
    allow_videos: bool = True
    default_album: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "verify_ssl": self.verify_ssl,
            "timeout": self.timeout,
            "upload_timeout": self.upload_timeout,
            "refresh_interval": self.refresh_interval,
            "max_upload_mb": self.max_upload_mb,
            "allow_videos": self.allow_videos,
            "default_album": self.default_album,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Create from dictionary."""
        return cls(
            url=data.get("url") or DEFAULT_API_URL,
            verify_ssl=data.get("verify_ssl", True),
            timeout=data.get("timeout", DEFAULT_TIMEOUT),
            upload_timeout=data.get("upload_timeout", DEFAULT_UPLOAD_TIMEOUT),
            refresh_interval=data.get("refresh_interval", DEFAULT_REFRESH_INTERVAL),
            max_upload_mb=data.get("max_upload_mb", DEFAULT_MAX_UPLOAD_MB),
            allow_videos=data.get("allow_videos", True),
            default_album=data.get("default_album"),
        )


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Application configuration."""

    default_profile: str = "default"
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from file with environment variable overrides.

        Priority (highest to lowest):
        1. Environment variables
        2. Config file
        3. Defaults (a local development profile)

        Args:
            config_path: Optional path to config file.

        Returns:
            Loaded configuration.
        """
        path = config_path or CONFIG_FILE
        config = cls()

        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

                config.default_profile = data.get("default_profile", "default")
                config.output_format = data.get("output_format", "table")

                for name, pdata in (data.get("profiles") or {}).items():
                    config.profiles[name] = Profile.from_dict(pdata or {})
            except Exception as e:
                raise ConfigurationError(f"Failed to load config: {e}") from e

        if url := os.getenv(ENV_URL):
            verify_ssl = os.getenv(ENV_VERIFY_SSL, "true").lower() in ("true", "1", "yes")
            try:
                timeout = int(os.getenv(ENV_TIMEOUT, str(DEFAULT_TIMEOUT)))
            except ValueError as e:
                raise ConfigurationError(
                    "Timeout must be an integer", field=ENV_TIMEOUT, value=os.getenv(ENV_TIMEOUT)
                ) from e

            base = config.profiles.get("default", Profile())
            base.url = url
            base.verify_ssl = verify_ssl
            base.timeout = timeout
            config.profiles["default"] = base

        if profile := os.getenv(ENV_PROFILE):
            config.default_profile = profile

        if not config.profiles:
            config.profiles["default"] = Profile()

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save config to file (never includes credentials).

        Args:
            config_path: Optional path to config file.
        """
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Get profile by name or default.

        Raises:
            ProfileNotFoundError: If profile doesn't exist.
        """
        name = name or self.default_profile
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        return self.profiles[name]

    def has_profile(self, name: str) -> bool:
        """Check if profile exists."""
        return name in self.profiles

    def add_profile(self, name: str, url: str, **options: Any) -> Profile:
        """Add or update a profile.

        Args:
            name: Profile name.
            url: API base URL.
            **options: Other Profile fields.

        Returns:
            Created profile.
        """
        profile = Profile(url=validate_api_url(url), **options)
        self.profiles[name] = profile
        return profile


def get_credentials() -> tuple[Optional[str], Optional[str]]:
    """Get credentials from environment variables.

    Returns:
        Tuple of (email, password) from environment.
    """
    return os.getenv(ENV_EMAIL), os.getenv(ENV_PASSWORD)
