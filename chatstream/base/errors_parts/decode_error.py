"""Error raised by the frame codec for payloads it cannot parse."""
from __future__ import annotations


class FrameDecodeError(ValueError):
    """Raised when a pushed frame cannot be parsed into a known payload shape."""


__all__ = ["FrameDecodeError"]
