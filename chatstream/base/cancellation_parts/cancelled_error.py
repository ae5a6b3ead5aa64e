"""Cancellation error type.

Defines the public ``CancelledError`` used to signal cooperative cancellation
of a stream.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively.

    Distinguishes a caller-initiated stop from transport failures so the
    stream reader can end quietly instead of reporting an error.
    """

__all__ = ["CancelledError"]
