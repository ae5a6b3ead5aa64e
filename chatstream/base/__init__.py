"""
chatstream base package

Provider-independent building blocks used by the session controller:

- Cancellation: cooperative tokens handed to the stream reader
- Errors: normalized ``ErrorCode`` taxonomy and ``StreamError``
- Models: ``Message`` / ``Transcript``
- Streaming: SSE codec, transports and the ``StreamReader``
- Logging and timeouts shared by all of the above
"""

from .cancellation import CancellationToken, CancelledError
from .errors import ErrorCode, StreamError
from .models import Message, MessageStatus, Role, Transcript
from .timeouts import TimeoutConfig, get_timeout_config
from .streaming import (
    ContentDelta,
    EndOfStream,
    ErrorFrame,
    HttpxSseTransport,
    StreamCallbacks,
    StreamHandle,
    StreamReader,
)

__all__ = [
    "CancellationToken",
    "CancelledError",
    "ErrorCode",
    "StreamError",
    "Message",
    "MessageStatus",
    "Role",
    "Transcript",
    "TimeoutConfig",
    "get_timeout_config",
    "ContentDelta",
    "EndOfStream",
    "ErrorFrame",
    "HttpxSseTransport",
    "StreamCallbacks",
    "StreamHandle",
    "StreamReader",
]
