"""Decoded frame types handed from the stream reader to the session.

A pushed SSE event decodes into exactly one of:

* ``ContentDelta`` - a text fragment, possibly empty, possibly final.
* ``ErrorFrame`` - an explicit error payload from the backend.
* ``EndOfStream`` - the ``event: end`` marker, which carries no payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ContentDelta:
    """Text fragment to append to the active responder message.

    Fields:
      content: fragment text (may be empty)
      finish_reason: ``None`` while streaming; non-null on the final frame
      frame_id: server-assigned id, informational
    """

    content: str
    finish_reason: Optional[str] = None
    frame_id: Optional[Union[int, str]] = None

    @property
    def finished(self) -> bool:
        """Whether this frame carries the terminal marker."""
        return self.finish_reason is not None


@dataclass(frozen=True)
class ErrorFrame:
    message: str
    code: Optional[int] = None


@dataclass(frozen=True)
class EndOfStream:
    """``event: end`` - the server will send nothing further."""


Frame = Union[ContentDelta, ErrorFrame, EndOfStream]

__all__ = ["ContentDelta", "ErrorFrame", "EndOfStream", "Frame"]
