"""Transfer adapters: move file bytes to a storage backend.

Each adapter knows one provider's transfer protocol. The server picks the
provider at initiate time; :class:`AdapterRegistry` maps its discriminator to
the adapter, so adding a provider never touches the upload session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, ClassVar
from urllib.parse import parse_qsl, unquote_plus, urlsplit, urlunsplit

import httpx

from albumctl.core.exceptions import TransferError, UnsupportedProviderError
from albumctl.core.logging import get_logger
from albumctl.models.media import LocalFile, UploadTarget

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransferReceipt:
    """What a successful transfer hands to the confirm step."""

    provider: str
    confirm_payload: dict[str, Any] | None = None


# =============================================================================
# Base
# =============================================================================


class TransferAdapter(ABC):
    """Protocol-specific byte mover for one storage provider."""

    provider: ClassVar[str]

    @abstractmethod
    async def transfer(
        self,
        http: httpx.AsyncClient,
        file: LocalFile,
        target: UploadTarget,
    ) -> TransferReceipt:
        """Send ``file`` to ``target``.

        Raises:
            TransferError: Non-2xx from storage, transport failure, or a
                response missing fields the provider must return.
        """

    def _require_url(self, target: UploadTarget) -> str:
        if not target.upload_url:
            raise TransferError("Server did not provide an upload URL", self.provider)
        return target.upload_url

    async def _send(self, http: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransferError(f"Upload failed: {e}", self.provider) from e


# =============================================================================
# Direct storage (pre-signed PUT)
# =============================================================================


class DirectPutAdapter(TransferAdapter):
    """Single PUT of the raw bytes to a pre-signed URL."""

    provider = "s3"

    async def transfer(
        self,
        http: httpx.AsyncClient,
        file: LocalFile,
        target: UploadTarget,
    ) -> TransferReceipt:
        url = self._require_url(target)
        headers = {"Content-Type": file.content_type} if file.content_type else {}
        resp = await self._send(http, "PUT", url, content=file.read(), headers=headers)
        if resp.is_error:
            raise TransferError(
                f"Upload failed: HTTP {resp.status_code}",
                self.provider,
                resp.status_code,
            )
        return TransferReceipt(provider=self.provider)


# =============================================================================
# Signed third-party provider (multipart POST)
# =============================================================================

# Upload-policy fields the provider expects in the form body, not the URL
BODY_POLICY_FIELDS = frozenset({"upload_preset"})


def split_policy_fields(url: str) -> tuple[str, dict[str, str]]:
    """Move body-only policy fields out of a URL's query string.

    All other parameters (including ``signature``, ``api_key`` and
    ``timestamp``) are left in the URL byte-for-byte and in their original
    order, since the signature was computed over them.

    Returns:
        The URL without policy fields, and the extracted fields.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url, {}

    kept: list[str] = []
    moved: dict[str, str] = {}
    for segment in parts.query.split("&"):
        key = unquote_plus(segment.split("=", 1)[0])
        if key in BODY_POLICY_FIELDS:
            pairs = parse_qsl(segment, keep_blank_values=True)
            moved[key] = pairs[0][1] if pairs else ""
        else:
            kept.append(segment)

    if not moved:
        return url, {}
    return urlunsplit(parts._replace(query="&".join(kept))), moved


class SignedMultipartAdapter(TransferAdapter):
    """Multipart POST to a signed third-party upload endpoint."""

    provider = "cloudinary"
    asset_id_field = "public_id"

    async def transfer(
        self,
        http: httpx.AsyncClient,
        file: LocalFile,
        target: UploadTarget,
    ) -> TransferReceipt:
        url, body = split_policy_fields(self._require_url(target))
        for key, value in (target.upload_fields or {}).items():
            body.setdefault(key, str(value))

        resp = await self._send(
            http,
            "POST",
            url,
            data=body,
            files={"file": (file.name, file.read(), file.content_type or "application/octet-stream")},
        )

        if resp.is_error:
            raise TransferError(self._provider_error(resp), self.provider, resp.status_code)

        try:
            result = resp.json()
        except ValueError as e:
            raise TransferError("Upload succeeded but the response was not JSON", self.provider) from e

        if not isinstance(result, dict) or not result.get(self.asset_id_field):
            raise TransferError(
                f"Upload succeeded but no {self.asset_id_field} returned", self.provider
            )

        return TransferReceipt(
            provider=self.provider,
            confirm_payload={"cloudinaryResponse": result},
        )

    @staticmethod
    def _provider_error(resp: httpx.Response) -> str:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return f"Upload failed: {resp.reason_phrase or resp.status_code}"


# =============================================================================
# Local/simple storage (multipart POST to the API host)
# =============================================================================


class LocalMultipartAdapter(TransferAdapter):
    """Multipart POST carrying the file and its media id."""

    provider = "local"

    async def transfer(
        self,
        http: httpx.AsyncClient,
        file: LocalFile,
        target: UploadTarget,
    ) -> TransferReceipt:
        url = self._require_url(target)
        resp = await self._send(
            http,
            "POST",
            url,
            data={"mediaId": target.media_id},
            files={"file": (file.name, file.read(), file.content_type or "application/octet-stream")},
        )
        if resp.is_error:
            raise TransferError(
                f"Upload failed: HTTP {resp.status_code}",
                self.provider,
                resp.status_code,
            )
        return TransferReceipt(provider=self.provider)


# =============================================================================
# Registry
# =============================================================================


class AdapterRegistry:
    """Lookup of transfer adapters by provider discriminator."""

    def __init__(self, adapters: Iterable[TransferAdapter] | None = None):
        self._adapters: dict[str, TransferAdapter] = {}
        for adapter in adapters or ():
            self.register(adapter)

    @property
    def providers(self) -> list[str]:
        return sorted(self._adapters)

    def register(self, adapter: TransferAdapter) -> None:
        self._adapters[adapter.provider] = adapter

    def get(self, provider: str) -> TransferAdapter:
        """Return the adapter for ``provider``.

        Raises:
            UnsupportedProviderError: If none is registered.
        """
        try:
            return self._adapters[provider]
        except KeyError:
            raise UnsupportedProviderError(provider) from None


def default_registry() -> AdapterRegistry:
    """Registry with the three built-in providers."""
    return AdapterRegistry([DirectPutAdapter(), SignedMultipartAdapter(), LocalMultipartAdapter()])
