"""Observer registry used by the session controller to publish snapshots."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from .state import SessionSnapshot

Observer = Callable[[SessionSnapshot], None]


class ObserverRegistry:
    """Ordered list of snapshot observers.

    A failing observer is logged and skipped; it never interrupts the
    session or the remaining observers.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._observers: List[Observer] = []
        self._lock = Lock()
        self._logger = logger

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def notify(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(snapshot)
            except Exception:
                self._logger.exception("session observer %r failed", observer)

    def __len__(self) -> int:
        return len(self._observers)


__all__ = ["Observer", "ObserverRegistry"]
