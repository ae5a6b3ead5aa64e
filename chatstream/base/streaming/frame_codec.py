"""Server-Sent Events line codec.

Decoding happens in two steps so each can be tested on its own:

1. :class:`SseDecoder` turns raw text lines into :class:`SseEvent` records.
   Fields are ``data``, ``event``, ``id`` and ``retry``; lines starting with
   ``:`` are comments; repeated ``data`` lines are joined with ``\\n``; a blank
   line dispatches the event. An event still incomplete when the stream ends
   is discarded.
2. :func:`decode_event` maps an ``SseEvent`` to a frame, validating the JSON
   payload with the DTOs in ``base.dto``. Anything that does not fit raises
   :class:`FrameDecodeError`.

The ``encode_*`` helpers produce the same wire text and are used by the
development backend and by tests.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Iterable, Iterator, List, Optional

from pydantic import ValidationError

from ..dto.frame_payload import ChunkPayloadDTO, ErrorPayloadDTO
from ..errors import FrameDecodeError
from .frames import ContentDelta, EndOfStream, ErrorFrame, Frame

DEFAULT_EVENT = "message"
END_EVENT = "end"


@dataclass(frozen=True)
class SseEvent:
    """One dispatched SSE event."""

    event: str = DEFAULT_EVENT
    data: str = ""
    id: Optional[str] = None


class SseDecoder:
    """Incremental line-oriented SSE decoder.

    Feed one line at a time (without its terminator); ``feed`` returns an
    event whenever a blank line completes one.
    """

    def __init__(self) -> None:
        self._data: List[str] = []
        self._event: Optional[str] = None
        self._last_id: Optional[str] = None
        self._first_line = True
        self.retry_ms: Optional[int] = None

    @property
    def last_event_id(self) -> Optional[str]:
        return self._last_id

    def feed(self, line: str) -> Optional[SseEvent]:
        if self._first_line:
            self._first_line = False
            line = line.lstrip("\ufeff")
        line = line.rstrip("\r")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None
        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            if "\x00" not in value:
                self._last_id = value
        elif name == "retry":
            if value.isdigit():
                self.retry_ms = int(value)
        return None

    def _dispatch(self) -> Optional[SseEvent]:
        if not self._data and self._event is None:
            return None
        evt = SseEvent(
            event=self._event or DEFAULT_EVENT,
            data="\n".join(self._data),
            id=self._last_id,
        )
        self._data = []
        self._event = None
        return evt


def iter_events(lines: Iterable[str]) -> Iterator[SseEvent]:
    """Yield events decoded from ``lines`` in arrival order."""
    decoder = SseDecoder()
    for line in lines:
        evt = decoder.feed(line)
        if evt is not None:
            yield evt


def decode_event(evt: SseEvent) -> Optional[Frame]:
    """Decode one SSE event into a frame.

    Returns ``None`` for named events this client does not understand.

    Raises:
        FrameDecodeError: when a message event does not carry a JSON object
            matching a chunk or error payload.
    """
    if evt.event == END_EVENT:
        return EndOfStream()
    if evt.event != DEFAULT_EVENT:
        return None
    try:
        payload = json.loads(evt.data)
    except ValueError as exc:
        raise FrameDecodeError(f"frame is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise FrameDecodeError(f"frame payload must be an object, got {type(payload).__name__}")
    try:
        if payload.get("error") is not None:
            err = ErrorPayloadDTO.model_validate(payload).error
            return ErrorFrame(message=err.message, code=err.code)
        chunk = ChunkPayloadDTO.model_validate(payload)
    except ValidationError as exc:
        raise FrameDecodeError(f"frame payload has unexpected shape: {exc.errors()}") from exc
    return ContentDelta(content=chunk.content, finish_reason=chunk.finish_reason, frame_id=chunk.id)


def encode_chunk(content: str, finish_reason: Optional[str] = None, frame_id: Optional[int | str] = None) -> str:
    payload = {"id": frame_id, "content": content, "finish_reason": finish_reason}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def encode_error(message: str, code: Optional[int] = None) -> str:
    payload = {"error": {"message": message, "code": code}}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def encode_end() -> str:
    return f"event: {END_EVENT}\n\n"


__all__ = [
    "SseEvent",
    "SseDecoder",
    "iter_events",
    "decode_event",
    "encode_chunk",
    "encode_error",
    "encode_end",
]
