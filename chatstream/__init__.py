"""chatstream package

Client for server-pushed, incremental text generation over Server-Sent Events.

Public API (re-exported):
    - Session: :class:`SessionController`, :class:`SessionSnapshot`,
      :class:`SessionState`
    - Streaming: :class:`StreamReader`, :class:`HttpxSseTransport`
    - Model: :class:`Message`, :class:`MessageStatus`, :class:`Role`
    - Errors: :class:`StreamError`, :class:`ErrorCode`
    - Config: :class:`ClientSettings`

Typical use::

    controller = SessionController()
    controller.subscribe(lambda snap: render(snap.messages))
    controller.submit("hello")
"""

from .base.errors import ErrorCode, StreamError
from .base.models import Message, MessageStatus, Role
from .base.streaming import HttpxSseTransport, StreamReader
from .config import ClientSettings
from .session import SessionController, SessionSnapshot, SessionState

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ErrorCode",
    "StreamError",
    "Message",
    "MessageStatus",
    "Role",
    "HttpxSseTransport",
    "StreamReader",
    "ClientSettings",
    "SessionController",
    "SessionSnapshot",
    "SessionState",
]
