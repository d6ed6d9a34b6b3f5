"""Tests for albumctl.uploads.preview module."""

from __future__ import annotations

from albumctl.models.media import LocalFile
from albumctl.uploads.preview import PREVIEW_SCHEME, PreviewStore

PHOTO = LocalFile.from_bytes("sunset.jpg", b"\xff\xd8", "image/jpeg")


class TestPreviewStore:
    def test_create_and_resolve(self):
        store = PreviewStore()
        handle = store.create(PHOTO)

        assert handle.url.startswith(f"{PREVIEW_SCHEME}:")
        assert handle.file_name == "sunset.jpg"
        assert store.resolve(handle) is PHOTO
        assert store.active == 1

    def test_handles_are_distinct(self):
        store = PreviewStore()
        assert store.create(PHOTO).url != store.create(PHOTO).url
        assert store.active == 2

    def test_revoke_once(self):
        store = PreviewStore()
        handle = store.create(PHOTO)

        assert store.revoke(handle) is True
        assert store.revoke(handle) is False
        assert store.resolve(handle) is None
        assert (store.created, store.revoked, store.active) == (1, 1, 0)
