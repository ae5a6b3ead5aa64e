"""
Transcript entry model.

Defines ``Message`` together with its ``Role`` and ``MessageStatus`` enums.
Status only moves forward (``pending -> streaming -> completed|failed``); the
two final states are terminal, and a failed responder message is replaced by
retry rather than revived.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet
from uuid import uuid4

from ..errors_parts.transition_error import InvalidTransitionError


class Role(str, Enum):
    """Author of a transcript entry."""

    REQUESTER = "user"
    RESPONDER = "assistant"


class MessageStatus(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED: Dict[MessageStatus, FrozenSet[MessageStatus]] = {
    MessageStatus.PENDING: frozenset(
        {MessageStatus.STREAMING, MessageStatus.COMPLETED, MessageStatus.FAILED}
    ),
    MessageStatus.STREAMING: frozenset({MessageStatus.COMPLETED, MessageStatus.FAILED}),
    MessageStatus.COMPLETED: frozenset(),
    MessageStatus.FAILED: frozenset(),
}


def new_message_id(role: Role) -> str:
    """Return a fresh opaque id, prefixed with the role for readable logs."""
    return f"{role.value}-{uuid4().hex}"


@dataclass
class Message:
    """One transcript entry.

    Attributes:
        role: Requester (the caller's text) or Responder (generated text).
        content: Text buffer; append-only while the message is streaming.
        status: Lifecycle status, see :class:`MessageStatus`.
        id: Opaque unique identifier assigned at creation.
    """

    role: Role
    content: str = ""
    status: MessageStatus = MessageStatus.PENDING
    id: str = field(default="")

    def __post_init__(self) -> None:
        if not self.id:
            self.id = new_message_id(self.role)

    @classmethod
    def request(cls, text: str) -> "Message":
        """Build a finished requester message carrying ``text``."""
        return cls(role=Role.REQUESTER, content=text, status=MessageStatus.COMPLETED)

    @classmethod
    def response(cls) -> "Message":
        """Build an empty pending responder message."""
        return cls(role=Role.RESPONDER)

    @property
    def is_final(self) -> bool:
        return self.status in (MessageStatus.COMPLETED, MessageStatus.FAILED)

    def transition(self, target: MessageStatus) -> bool:
        """Move to ``target``; returns ``False`` when already there.

        Raises:
            InvalidTransitionError: when ``target`` is not reachable forward.
        """
        if target is self.status:
            return False
        if target not in _ALLOWED[self.status]:
            raise InvalidTransitionError(
                f"message {self.id}: {self.status.value} -> {target.value} is not allowed"
            )
        self.status = target
        return True

    def append(self, text: str) -> None:
        """Append a fragment to a streaming message."""
        if self.status is not MessageStatus.STREAMING:
            raise InvalidTransitionError(
                f"message {self.id}: cannot append while {self.status.value}"
            )
        self.content += text

    def copy(self) -> "Message":
        return replace(self)


__all__ = ["Message", "MessageStatus", "Role", "new_message_id"]
