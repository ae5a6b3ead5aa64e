"""Streaming package: frame types, SSE codec, transports and the stream reader."""

from .frames import ContentDelta, EndOfStream, ErrorFrame, Frame
from .frame_codec import (
    SseDecoder,
    SseEvent,
    decode_event,
    encode_chunk,
    encode_end,
    encode_error,
    iter_events,
)
from .streaming_metrics import StreamMetrics
from .transport import HttpxSseTransport, SseTransport
from .stream_reader import StreamCallbacks, StreamHandle, StreamReader, spawn_daemon_thread

__all__ = [
    "ContentDelta",
    "EndOfStream",
    "ErrorFrame",
    "Frame",
    "SseDecoder",
    "SseEvent",
    "decode_event",
    "encode_chunk",
    "encode_end",
    "encode_error",
    "iter_events",
    "StreamMetrics",
    "HttpxSseTransport",
    "SseTransport",
    "StreamCallbacks",
    "StreamHandle",
    "StreamReader",
    "spawn_daemon_thread",
]
