"""Base model and response envelope for album API payloads."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict
from pydantic import BaseModel as PydanticBaseModel
from pydantic.alias_generators import to_camel


class BaseModel(PydanticBaseModel):
    """Base model: the API speaks camelCase, Python attributes stay snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a camelCase dictionary."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ApiErrorBody(BaseModel):
    code: Any = None
    message: str | None = None


class Envelope(BaseModel):
    """``{"success": bool, "data": ..., "error": {...}}`` wrapper around every API response."""

    success: bool = True
    data: Any = None
    error: ApiErrorBody | str | None = None
    message: str | None = None

    @property
    def error_message(self) -> str | None:
        if isinstance(self.error, ApiErrorBody) and self.error.message:
            return self.error.message
        if isinstance(self.error, str) and self.error:
            return self.error
        return self.message or None

    @property
    def error_code(self) -> str | None:
        if isinstance(self.error, ApiErrorBody) and self.error.code is not None:
            return str(self.error.code)
        return None
