"""Upload session state machine.

An :class:`UploadSession` drives one file from selection to a terminal phase:

    SELECTED -> INITIATED -> TRANSFERRING -> CONFIRMING -> COMPLETE

with CANCELLED reachable from SELECTED, INITIATED and TRANSFERRING, and
FAILED from INITIATED, TRANSFERRING and CONFIRMING. Once the server has
handed out a media id the session always either confirms it or asks the
server to cancel it. Local resources (preview handle, input reset hook) are
released exactly once, on the first terminal transition.

:class:`UploadCoordinator` is the per-widget owner: at most one live session.
"""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union

from albumctl.core.client import ApiClient
from albumctl.core.exceptions import AlbumCtlError, InvalidTransitionError, UploadError
from albumctl.core.logging import LogContext, get_logger
from albumctl.models.media import LocalFile, UploadTarget
from albumctl.uploads.adapters import AdapterRegistry, TransferReceipt, default_registry
from albumctl.uploads.preview import PreviewHandle, PreviewStore
from albumctl.uploads.validation import (
    DEFAULT_MAX_SIZE_MB,
    FileValidationResult,
    validate_file,
)

logger = get_logger(__name__)


# =============================================================================
# Phases
# =============================================================================


class UploadPhase(Enum):
    """Lifecycle phases of an upload session."""

    IDLE = "idle"
    SELECTED = "selected"
    INITIATED = "initiated"
    TRANSFERRING = "transferring"
    CONFIRMING = "confirming"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset({UploadPhase.COMPLETE, UploadPhase.CANCELLED, UploadPhase.FAILED})

TRANSITIONS: dict[UploadPhase, frozenset[UploadPhase]] = {
    UploadPhase.SELECTED: frozenset({UploadPhase.INITIATED, UploadPhase.CANCELLED}),
    UploadPhase.INITIATED: frozenset(
        {UploadPhase.TRANSFERRING, UploadPhase.CANCELLED, UploadPhase.FAILED}
    ),
    UploadPhase.TRANSFERRING: frozenset(
        {UploadPhase.CONFIRMING, UploadPhase.CANCELLED, UploadPhase.FAILED}
    ),
    UploadPhase.CONFIRMING: frozenset({UploadPhase.COMPLETE, UploadPhase.FAILED}),
}


@dataclass(frozen=True)
class Selected:
    phase: ClassVar[UploadPhase] = UploadPhase.SELECTED
    upload_name: str


@dataclass(frozen=True)
class Initiated:
    phase: ClassVar[UploadPhase] = UploadPhase.INITIATED
    target: UploadTarget

    @property
    def media_id(self) -> str:
        return self.target.media_id


@dataclass(frozen=True)
class Transferring:
    phase: ClassVar[UploadPhase] = UploadPhase.TRANSFERRING
    target: UploadTarget

    @property
    def media_id(self) -> str:
        return self.target.media_id


@dataclass(frozen=True)
class Confirming:
    phase: ClassVar[UploadPhase] = UploadPhase.CONFIRMING
    target: UploadTarget
    receipt: TransferReceipt

    @property
    def media_id(self) -> str:
        return self.target.media_id


@dataclass(frozen=True)
class Complete:
    phase: ClassVar[UploadPhase] = UploadPhase.COMPLETE
    media_id: str


@dataclass(frozen=True)
class Cancelled:
    phase: ClassVar[UploadPhase] = UploadPhase.CANCELLED
    media_id: Optional[str]
    reason: str


@dataclass(frozen=True)
class Failed:
    phase: ClassVar[UploadPhase] = UploadPhase.FAILED
    media_id: Optional[str]
    error: str


SessionState = Union[Selected, Initiated, Transferring, Confirming, Complete, Cancelled, Failed]


@dataclass(frozen=True)
class UploadResult:
    """Structured outcome handed back to the UI/CLI."""

    success: bool
    phase: UploadPhase
    file_name: str
    media_id: Optional[str] = None
    error: Optional[str] = None


# =============================================================================
# Destinations
# =============================================================================

_TAG_RE = re.compile(r"<[^>]*>")


def sanitize_text(text: str | None) -> str:
    """Remove HTML tags and surrounding whitespace from free text."""
    if not text:
        return ""
    return _TAG_RE.sub("", text).strip()


class UploadDestination(ABC):
    """Where an upload goes; knows which initiate endpoint to call."""

    @abstractmethod
    async def initiate(self, api: ApiClient, file: LocalFile, upload_name: str) -> UploadTarget:
        """Create the server-side placeholder."""


@dataclass(frozen=True)
class AlbumDestination(UploadDestination):
    """An album owned by the signed-in user."""

    album_id: str

    async def initiate(self, api: ApiClient, file: LocalFile, upload_name: str) -> UploadTarget:
        return await api.initiate_upload(self.album_id, upload_name, file.content_type, file.size)


@dataclass(frozen=True)
class PublicAlbumDestination(UploadDestination):
    """A public album, reached with an access session token."""

    album_identifier: str
    session_token: Optional[str] = None
    contributor_name: Optional[str] = None

    async def initiate(self, api: ApiClient, file: LocalFile, upload_name: str) -> UploadTarget:
        return await api.initiate_public_upload(
            self.album_identifier,
            upload_name,
            file.content_type,
            file.size,
            session_token=self.session_token,
            contributor_name=sanitize_text(self.contributor_name) or None,
        )


# =============================================================================
# UploadSession
# =============================================================================


class UploadSession:
    """One file transfer attempt."""

    def __init__(
        self,
        file: LocalFile,
        validation: FileValidationResult,
        api: ApiClient,
        *,
        adapters: AdapterRegistry | None = None,
        previews: PreviewStore | None = None,
        preview: PreviewHandle | None = None,
        on_release: Callable[[], None] | None = None,
    ):
        """Create a session in SELECTED.

        Args:
            file: The selected file.
            validation: A passing result from :func:`validate_file`.
            api: Authenticated request pipeline.
            adapters: Transfer adapters by provider.
            previews: Store that issued ``preview``.
            preview: Preview handle owned by this session.
            on_release: Called once on the terminal transition (e.g. to reset
                the file input).
        """
        if not validation.valid:
            raise UploadError(validation.error or "File validation failed", file.name)

        self.file = file
        self.is_image = validation.is_image
        self.is_video = validation.is_video
        self.upload_name = validation.sanitized_name or file.name
        self._api = api
        self._adapters = adapters or default_registry()
        self._previews = previews
        self._preview = preview
        self._on_release = on_release
        self._state: SessionState = Selected(self.upload_name)
        self._media_id: str | None = None
        self._busy = False
        self._cancel_requested = False
        self._server_cancel_attempted = False
        self._settled = asyncio.Event()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> UploadPhase:
        return self._state.phase

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    @property
    def media_id(self) -> str | None:
        return self._media_id

    @property
    def preview(self) -> PreviewHandle | None:
        return self._preview

    @property
    def error(self) -> str | None:
        if isinstance(self._state, Failed):
            return self._state.error
        if isinstance(self._state, Cancelled) and not self._cancel_requested:
            return self._state.reason
        return None

    @property
    def result(self) -> UploadResult:
        return UploadResult(
            success=self.phase is UploadPhase.COMPLETE,
            phase=self.phase,
            file_name=self.upload_name,
            media_id=self._media_id,
            error=self.error,
        )

    def _transition(self, new_state: SessionState) -> None:
        allowed = TRANSITIONS.get(self.phase, frozenset())
        if new_state.phase not in allowed:
            raise InvalidTransitionError(self.phase.value, new_state.phase.value)

        logger.debug("Upload %s: %s -> %s", self.upload_name, self.phase.value, new_state.phase.value)
        self._state = new_state
        if new_state.phase.is_terminal:
            self._release()
            self._settled.set()

    def _release(self) -> None:
        """Revoke the preview and run the release hook, once each."""
        handle, self._preview = self._preview, None
        if handle is not None and self._previews is not None:
            self._previews.revoke(handle)

        hook, self._on_release = self._on_release, None
        if hook is not None:
            hook()

    async def _cancel_on_server(self) -> None:
        """Best-effort release of the server placeholder, at most once."""
        if self._media_id is None or self._server_cancel_attempted:
            return
        self._server_cancel_attempted = True
        try:
            await self._api.cancel_upload(self._media_id)
        except AlbumCtlError as e:
            logger.warning("Failed to cancel upload %s: %s", self._media_id, e)

    async def _end(self, error: str | None, *, cancel_on_server: bool) -> None:
        if cancel_on_server:
            await self._cancel_on_server()

        if self._cancel_requested and UploadPhase.CANCELLED in TRANSITIONS[self.phase]:
            self._transition(Cancelled(self._media_id, "cancelled by user"))
        elif error is not None and UploadPhase.FAILED in TRANSITIONS[self.phase]:
            self._transition(Failed(self._media_id, error))
        else:
            self._transition(Cancelled(self._media_id, error or "cancelled"))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, destination: UploadDestination) -> UploadResult:
        """Run initiate, transfer and confirm.

        Never raises for upload failures: the outcome is in the returned
        result and in :attr:`phase`.

        Raises:
            InvalidTransitionError: If the session is not in SELECTED or is
                already running.
        """
        if self.phase is not UploadPhase.SELECTED or self._busy:
            raise InvalidTransitionError(self.phase.value, UploadPhase.INITIATED.value)

        self._busy = True
        try:
            with LogContext("upload", logger, file=self.upload_name) as ctx:
                await self._run(destination, ctx)
                if not self.result.success:
                    ctx.warning("ended %s: %s", self.phase.value, self.error or "no error")
        except asyncio.CancelledError:
            self._cancel_requested = True
            await self._abandon("upload interrupted")
            raise
        except Exception as e:
            await self._abandon(f"Unexpected error: {e}")
            raise
        finally:
            self._busy = False
        return self.result

    async def _abandon(self, error: str) -> None:
        if self.is_terminal:
            return
        await self._end(error, cancel_on_server=self.phase is not UploadPhase.CONFIRMING)

    async def _run(self, destination: UploadDestination, ctx: LogContext) -> None:
        # SELECTED -> INITIATED
        try:
            target = await destination.initiate(self._api, self.file, self.upload_name)
        except AlbumCtlError as e:
            await self._end(str(e), cancel_on_server=False)
            return

        self._media_id = target.media_id
        ctx.update(media_id=self._media_id, provider=target.provider_type)

        if self._cancel_requested:
            await self._end(None, cancel_on_server=True)
            return
        self._transition(Initiated(target))

        # INITIATED -> TRANSFERRING
        try:
            adapter = self._adapters.get(target.provider_type)
        except AlbumCtlError as e:
            await self._end(str(e), cancel_on_server=True)
            return
        self._transition(Transferring(target))

        try:
            receipt = await adapter.transfer(self._api.storage_client(), self.file, target)
        except (AlbumCtlError, OSError) as e:
            await self._end(str(e), cancel_on_server=True)
            return

        if self._cancel_requested:
            await self._end(None, cancel_on_server=True)
            return

        # TRANSFERRING -> CONFIRMING -> COMPLETE
        self._transition(Confirming(target, receipt))
        try:
            await self._api.confirm_upload(self._media_id, receipt.confirm_payload)
        except AlbumCtlError as e:
            # The media record stays server-side; confirm failures are not retracted
            await self._end(str(e), cancel_on_server=False)
            return

        self._transition(Complete(self._media_id))

    async def cancel(self) -> bool:
        """Cancel the upload.

        From SELECTED or INITIATED the session is cleaned up at once. While an
        initiate or transfer is in flight, local resources are released now
        and the server placeholder is released once that step settles; the
        call returns when the session is terminal.

        Returns:
            True if the session ended CANCELLED because of this call.
        """
        if self.is_terminal:
            return False

        if self.phase is UploadPhase.CONFIRMING:
            await self._settled.wait()
            return False

        if self._busy:
            self._cancel_requested = True
            self._release()
            await self._settled.wait()
            return self.phase is UploadPhase.CANCELLED

        self._cancel_requested = True
        await self._end(None, cancel_on_server=True)
        return True


# =============================================================================
# UploadCoordinator
# =============================================================================


class UploadCoordinator:
    """Owns the single live upload session of one upload widget."""

    def __init__(
        self,
        api: ApiClient,
        *,
        max_size_mb: float = DEFAULT_MAX_SIZE_MB,
        allow_videos: bool = True,
        adapters: AdapterRegistry | None = None,
        previews: PreviewStore | None = None,
        on_release: Callable[[], None] | None = None,
    ):
        self.api = api
        self.max_size_mb = max_size_mb
        self.allow_videos = allow_videos
        self.adapters = adapters or default_registry()
        self.previews = previews or PreviewStore()
        self.on_release = on_release
        self._session: UploadSession | None = None

    @property
    def session(self) -> UploadSession | None:
        return self._session

    @property
    def phase(self) -> UploadPhase:
        return self._session.phase if self._session else UploadPhase.IDLE

    async def select(self, file: LocalFile) -> FileValidationResult:
        """Validate ``file`` and make it the live session.

        An invalid file creates nothing and leaves any previous session as
        is. A valid file first cancels and clears the previous session.
        """
        validation = validate_file(file, self.max_size_mb, self.allow_videos)
        if not validation.valid:
            logger.info("Rejected %s: %s", file.name, validation.error)
            if self.on_release is not None:
                self.on_release()
            return validation

        await self.clear()

        preview = self.previews.create(file) if validation.is_image else None
        self._session = UploadSession(
            file,
            validation,
            self.api,
            adapters=self.adapters,
            previews=self.previews,
            preview=preview,
            on_release=self.on_release,
        )
        return validation

    async def upload(self, destination: UploadDestination) -> UploadResult:
        """Start the live session.

        Raises:
            InvalidTransitionError: If nothing is selected.
        """
        if self._session is None:
            raise InvalidTransitionError(UploadPhase.IDLE.value, UploadPhase.INITIATED.value)
        return await self._session.start(destination)

    async def cancel(self) -> bool:
        """Cancel the live session, if any."""
        if self._session is None:
            return False
        return await self._session.cancel()

    async def clear(self) -> None:
        """Cancel a pending session and forget it."""
        session, self._session = self._session, None
        if session is not None and not session.is_terminal:
            await session.cancel()
