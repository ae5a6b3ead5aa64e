"""Local validation error raised by the message data model."""
from __future__ import annotations


class InvalidTransitionError(ValueError):
    """Raised when a message status would move backwards or leave a final state."""


__all__ = ["InvalidTransitionError"]
