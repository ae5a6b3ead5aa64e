"""
Structured stream error type.

A ``StreamError`` is the single value the session controller keeps as
``last_error``. Transport, decode and protocol failures all end up here, so
the display surface only ever deals with one shape.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .error_code import ErrorCode

# User-visible messages for failures that carry no server-supplied text.
CONNECTION_ERROR_MESSAGE = "Server connection error"
DECODE_ERROR_MESSAGE = "Failed to parse server response"


@dataclass
class StreamError(Exception):
    """Represents a failed generation.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message suitable for display.
        status: Numeric code from an error payload, or the HTTP status for
            rejected connections.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    status: Optional[int] = None
    raw: Optional[BaseException] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        suffix = f" ({self.status})" if self.status is not None else ""
        return f"{self.code.value}: {self.message}{suffix}"

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly view for logs and the CLI."""
        return {
            "code": self.code.value,
            "message": self.message,
            "status": self.status,
        }


__all__ = ["StreamError", "CONNECTION_ERROR_MESSAGE", "DECODE_ERROR_MESSAGE"]
