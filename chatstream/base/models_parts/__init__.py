"""Data model parts; import from ``chatstream.base.models``."""

from .message import Message, MessageStatus, Role, new_message_id
from .transcript import Transcript

__all__ = ["Message", "MessageStatus", "Role", "new_message_id", "Transcript"]
