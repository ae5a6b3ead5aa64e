"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose the cancellation constructs via the canonical
``chatstream.base.cancellation`` import path while the concrete
implementations live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` is handed to ``StreamReader.open`` by the session
  controller; cancelling it tears the push connection down.
- ``CancelledError`` is raised by operations that observe a cancellation request.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
