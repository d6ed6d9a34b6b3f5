"""Revocable in-memory preview handles for selected image files."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from albumctl.core.logging import get_logger
from albumctl.models.media import LocalFile

logger = get_logger(__name__)

PREVIEW_SCHEME = "preview"


@dataclass(frozen=True)
class PreviewHandle:
    url: str
    file_name: str


class PreviewStore:
    """Hands out preview handles and tracks which are still live."""

    def __init__(self) -> None:
        self._live: dict[str, LocalFile] = {}
        self.created = 0
        self.revoked = 0

    @property
    def active(self) -> int:
        return len(self._live)

    def create(self, file: LocalFile) -> PreviewHandle:
        handle = PreviewHandle(url=f"{PREVIEW_SCHEME}:{uuid.uuid4()}", file_name=file.name)
        self._live[handle.url] = file
        self.created += 1
        return handle

    def resolve(self, handle: PreviewHandle) -> LocalFile | None:
        return self._live.get(handle.url)

    def revoke(self, handle: PreviewHandle) -> bool:
        """Release a handle. Revoking an unknown or already revoked handle is a no-op."""
        if self._live.pop(handle.url, None) is None:
            logger.debug("Preview %s already revoked", handle.url)
            return False
        self.revoked += 1
        return True
