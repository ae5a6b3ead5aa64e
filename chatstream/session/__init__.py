"""Session layer: the controller that owns the transcript and stream lifecycle."""

from .controller import SessionController, StreamOpener
from .observers import Observer
from .state import SessionSnapshot, SessionState

__all__ = [
    "SessionController",
    "StreamOpener",
    "Observer",
    "SessionSnapshot",
    "SessionState",
]
