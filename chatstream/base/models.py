"""Transcript data model public surface."""

from .models_parts import Message, MessageStatus, Role, Transcript, new_message_id

__all__ = ["Message", "MessageStatus", "Role", "Transcript", "new_message_id"]
