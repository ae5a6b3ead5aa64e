"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

The stream reader never lets an exception reach the caller; whatever the
transport raises is classified here and folded into a ``StreamError``.
"""
from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from .error_code import ErrorCode
from .stream_error import CONNECTION_ERROR_MESSAGE, DECODE_ERROR_MESSAGE, StreamError
from .decode_error import FrameDecodeError
from ..cancellation_parts.cancelled_error import CancelledError


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from an exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    val = getattr(exc, "status_code", None)
    if isinstance(val, int) and 100 <= val < 600:
        return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. StreamError passthrough.
        2. Cancellation.
        3. Decode failures.
        4. Timeouts (httpx and builtin).
        5. HTTP status failures.
        6. Any other transport failure.
        7. ``INTERNAL`` fallback.
    """
    if isinstance(exc, StreamError):
        return exc.code
    if isinstance(exc, CancelledError):
        return ErrorCode.CANCELLED
    if isinstance(exc, FrameDecodeError):
        return ErrorCode.DECODE
    if isinstance(exc, (httpx.TimeoutException, TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, httpx.HTTPStatusError):
        return ErrorCode.HTTP_STATUS
    if isinstance(exc, (httpx.TransportError, httpx.StreamError, ConnectionError)):
        return ErrorCode.TRANSPORT
    return ErrorCode.INTERNAL


def to_stream_error(exc: BaseException) -> StreamError:
    """Build the user-visible ``StreamError`` for ``exc``.

    Connection-level failures of every flavour share one message; the code
    keeps the distinction for logs and callers that want it.
    """
    if isinstance(exc, StreamError):
        return exc
    code = classify_exception(exc)
    message = DECODE_ERROR_MESSAGE if code is ErrorCode.DECODE else CONNECTION_ERROR_MESSAGE
    return StreamError(code=code, message=message, status=_extract_status(exc), raw=exc)


__all__ = [
    "classify_exception",
    "to_stream_error",
    "_extract_status",
]
