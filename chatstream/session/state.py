"""Session lifecycle state and the immutable snapshot handed to observers."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..base.errors import StreamError
from ..base.models import Message, Role


class SessionState(str, Enum):
    """Lifecycle of the most recent generation.

    ``IDLE`` before the first submit; ``STREAMING`` while a stream is attached;
    ``COMPLETED`` after a terminal marker or a cancel; ``FAILED`` after any
    error.
    """

    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session at one point in time.

    ``messages`` holds detached copies, so observers may keep a snapshot
    without seeing later mutations.
    """

    messages: Tuple[Message, ...]
    generating: bool
    last_error: Optional[StreamError]
    state: SessionState
    epoch: int

    @property
    def active_message(self) -> Optional[Message]:
        """The responder message currently streaming, if any."""
        if not self.generating:
            return None
        return next((m for m in reversed(self.messages) if m.role is Role.RESPONDER), None)


__all__ = ["SessionState", "SessionSnapshot"]
