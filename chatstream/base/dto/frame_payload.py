"""
Pydantic DTOs for the JSON payload carried on ``data:`` lines.

Purpose
-------
Validate each pushed payload before it becomes a frame, so malformed server
output turns into a decode error at the codec boundary instead of corrupting
the transcript.

Shapes
------
Content chunk::

    {"id": 1712345678, "content": "Hello ", "finish_reason": null}

Error payload::

    {"error": {"message": "Internal Server Error", "code": 500}}

Failure modes: validation either succeeds or raises ``pydantic.ValidationError``;
the codec maps that to ``FrameDecodeError``.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

# Fallback text when an error payload carries no usable message.
DEFAULT_ERROR_MESSAGE = "Server error"


class ChunkPayloadDTO(BaseModel):
    """One content fragment.

    Attributes:
        id: Server-assigned identifier; informational only.
        content: Text to append; may be empty. ``null`` is read as empty.
        finish_reason: ``None`` while streaming; any non-null value (e.g.
            ``"stop"``) marks the final content frame.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    content: str = ""
    finish_reason: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _null_content_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ErrorDetailDTO(BaseModel):
    """Error description inside an error payload."""

    model_config = ConfigDict(extra="ignore")

    message: str = DEFAULT_ERROR_MESSAGE
    code: Optional[int] = None

    @field_validator("message", mode="before")
    @classmethod
    def _blank_message_uses_default(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_ERROR_MESSAGE
        return value


class ErrorPayloadDTO(BaseModel):
    """Payload whose presence of ``error`` marks a protocol error frame."""

    model_config = ConfigDict(extra="ignore")

    error: ErrorDetailDTO

    @field_validator("error", mode="before")
    @classmethod
    def _bare_string_error(cls, value: Any) -> Any:
        # some backends send {"error": "text"} instead of an object
        if isinstance(value, str):
            return {"message": value}
        return value


__all__ = [
    "ChunkPayloadDTO",
    "ErrorDetailDTO",
    "ErrorPayloadDTO",
    "DEFAULT_ERROR_MESSAGE",
]
