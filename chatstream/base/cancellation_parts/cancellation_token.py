"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class used by the session controller and the
stream reader. Besides polling (``cancelled`` / ``raise_if_cancelled``) the
token runs registered callbacks exactly once when cancelled, which is how a
blocked transport read gets interrupted from another thread.
"""

from __future__ import annotations

from contextlib import suppress
from threading import Lock
from typing import Callable, List

from .state import State
from .cancelled_error import CancelledError


class CancellationToken:
    """A cooperative cancellation token with optional cascading semantics.

    Thread-safe for ``cancel`` + ``raise_if_cancelled`` usage. Child tokens
    inherit cancellation when the parent is cancelled.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._lock = Lock()
        self._children: List[CancellationToken] = []
        self._callbacks: List[Callable[[], None]] = []
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cooperative cancellation, run callbacks and cascade to children."""
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            children = list(self._children)
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            # a failing release hook must not prevent the remaining ones
            with suppress(Exception):
                callback()
        for child in children:
            child.cancel(reason)

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register ``callback`` to run on cancellation.

        When the token is already cancelled the callback runs immediately on
        the calling thread.
        """
        with self._lock:
            if not self._state.cancelled:
                self._callbacks.append(callback)
                return
        with suppress(Exception):
            callback()

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            should_cancel = self._state.cancelled
            reason = self._state.reason
        if should_cancel:
            token.cancel(reason)
        return token

    def unlink_child(self, token: "CancellationToken") -> None:
        """Forget a finished child so long-lived parents do not accumulate them."""
        with self._lock:
            with suppress(ValueError):
                self._children.remove(token)

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if token is cancelled."""
        if self._state.cancelled:
            raise CancelledError(self._state.reason or "operation cancelled")

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
