"""Pydantic models for album API payloads."""

from albumctl.models.base import BaseModel
from albumctl.models.media import LocalFile, Media, UploadTarget, User

__all__ = [
    "BaseModel",
    "LocalFile",
    "Media",
    "UploadTarget",
    "User",
]
