"""Errors parts package public surface.

Prefer importing from `chatstream.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .stream_error import StreamError
from .classification import classify_exception, to_stream_error
from .decode_error import FrameDecodeError
from .transition_error import InvalidTransitionError

__all__ = [
    "ErrorCode",
    "StreamError",
    "classify_exception",
    "to_stream_error",
    "FrameDecodeError",
    "InvalidTransitionError",
]
