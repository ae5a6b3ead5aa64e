"""Unified stream error taxonomy public surface.

Re-exports the one-class-per-file implementations under
``chatstream.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.stream_error import (
    CONNECTION_ERROR_MESSAGE,
    DECODE_ERROR_MESSAGE,
    StreamError,
)
from .errors_parts.classification import classify_exception, to_stream_error
from .errors_parts.decode_error import FrameDecodeError
from .errors_parts.transition_error import InvalidTransitionError

__all__ = [
    "ErrorCode",
    "StreamError",
    "CONNECTION_ERROR_MESSAGE",
    "DECODE_ERROR_MESSAGE",
    "classify_exception",
    "to_stream_error",
    "FrameDecodeError",
    "InvalidTransitionError",
]
