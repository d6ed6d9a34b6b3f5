"""Models for users, media records, upload targets and local files."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import Field

from albumctl.models.base import BaseModel


class User(BaseModel):
    """Authenticated user as returned by the auth endpoints."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.email


class Media(BaseModel):
    """Server-side media placeholder/record."""

    id: str
    album_id: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    status: str | None = None


class UploadTarget(BaseModel):
    """Result of initiating an upload: where and how to send the bytes."""

    media: Media
    upload_url: str | None = None
    provider_type: str = "local"
    upload_fields: dict[str, Any] | None = Field(None, alias="fields")

    @property
    def media_id(self) -> str:
        return self.media.id


@dataclass(frozen=True)
class LocalFile:
    """A client-local file handle.

    Holds either a filesystem path or in-memory bytes. Name, type and size
    are known up front so validation never has to touch the content.
    """

    name: str
    content_type: str
    size: int
    path: Path | None = None
    data: bytes | None = None

    @classmethod
    def from_path(cls, path: Path | str, content_type: str | None = None) -> LocalFile:
        """Describe a file on disk (stat only, content is read lazily)."""
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or guessed or "",
            size=path.stat().st_size,
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str = "") -> LocalFile:
        return cls(name=name, content_type=content_type, size=len(data), data=data)

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)

    def read(self) -> bytes:
        """Return the file content."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"No content available for {self.name}")
        return self.path.read_bytes()
