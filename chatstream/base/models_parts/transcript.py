"""
Ordered conversation transcript.

Insertion order is conversation order. The only removal the session performs
is dropping a trailing failed responder message before a retry.
"""
from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from .message import Message, MessageStatus, Role


class Transcript:
    """Append-only list of :class:`Message` with a guarded tail removal."""

    def __init__(self) -> None:
        self._messages: List[Message] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def previous(self) -> Optional[Message]:
        """Return the entry just before the last one, if any."""
        return self._messages[-2] if len(self._messages) >= 2 else None

    def find(self, message_id: str) -> Optional[Message]:
        # the active message is almost always at the tail
        return next((m for m in reversed(self._messages) if m.id == message_id), None)

    def remove_failed_tail(self) -> Optional[Message]:
        """Remove and return the last message when it is a failed responder."""
        last = self.last()
        if last is None or last.role is not Role.RESPONDER or last.status is not MessageStatus.FAILED:
            return None
        return self._messages.pop()

    def snapshot(self) -> Tuple[Message, ...]:
        """Return detached copies of every message, in order."""
        return tuple(m.copy() for m in self._messages)


__all__ = ["Transcript"]
