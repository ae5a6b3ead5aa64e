"""Live transcript rendering for the terminal client.

``TranscriptPrinter`` is a session observer: each snapshot it receives is
compared with what it has already written, and only the new suffix of the
streaming responder message is printed. A finished message gets a trailing
newline; a failed one also gets the error line.
"""

from __future__ import annotations

import sys
from typing import Dict, Optional, Set, TextIO

from ...base.models import MessageStatus, Role
from ...session import SessionSnapshot

_RED = "\033[31m"
_RESET = "\033[0m"


class TranscriptPrinter:
    """Print streamed responder text incrementally.

    Parameters
    ----------
    out: Optional[TextIO]
        Destination stream (defaults to ``sys.stdout``).
    color: bool
        Wrap error lines in ANSI red.
    """

    def __init__(self, out: Optional[TextIO] = None, *, color: bool = False) -> None:
        self._out = out or sys.stdout
        self._color = color
        self._written: Dict[str, int] = {}
        self._finished: Set[str] = set()

    def __call__(self, snapshot: SessionSnapshot) -> None:
        for message in snapshot.messages:
            if message.role is not Role.RESPONDER or message.id in self._finished:
                continue
            done = self._written.get(message.id, 0)
            if len(message.content) > done:
                self._out.write(message.content[done:])
                self._written[message.id] = len(message.content)
            if message.is_final:
                self._finished.add(message.id)
                self._out.write("\n")
                if message.status is MessageStatus.FAILED and snapshot.last_error is not None:
                    self._out.write(self.format_error(snapshot.last_error.message) + "\n")
        self._out.flush()

    def format_error(self, text: str) -> str:
        line = f"[error] {text}"
        return f"{_RED}{line}{_RESET}" if self._color else line


def format_history(snapshot: SessionSnapshot) -> str:
    """Render the whole transcript, one ``role [status]: content`` line per message."""
    lines = []
    for message in snapshot.messages:
        label = "you" if message.role is Role.REQUESTER else "bot"
        lines.append(f"{label} [{message.status.value}]: {message.content}")
    return "\n".join(lines) if lines else "(empty)"


__all__ = ["TranscriptPrinter", "format_history"]
