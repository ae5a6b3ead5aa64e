"""Session controller: the single owner of the transcript and stream lifecycle.

State machine
-------------
``IDLE --submit--> STREAMING``; ``STREAMING`` ends in ``COMPLETED`` (terminal
marker, ``event: end`` or ``cancel``) or ``FAILED`` (error payload, decode
error, transport error). ``submit`` from ``COMPLETED``/``FAILED`` starts the
next generation.

Epochs
------
Every accepted ``submit`` increments ``epoch`` and binds the reader callbacks
to that value. A callback whose epoch is no longer current, or which arrives
after the generation ended, is dropped. This is what makes ``cancel`` take
effect immediately even though the reader thread may still be unwinding.

Threading
---------
State is guarded by one re-entrant lock. Reader callbacks arrive on the
reader's worker thread; public calls arrive on the caller's thread; neither
ever waits on network I/O while holding the lock. Observers run with the lock
held, in mutation order, so they must return quickly and must not wait on
other threads that need the session.
"""
from __future__ import annotations

from functools import partial
import logging
import threading
from typing import Callable, Optional, Protocol, Tuple
from uuid import uuid4

from ..base.cancellation import CancellationToken
from ..base.errors import StreamError, to_stream_error
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import Message, MessageStatus, Role, Transcript
from ..base.streaming import ContentDelta, StreamCallbacks, StreamReader
from .observers import Observer, ObserverRegistry
from .state import SessionSnapshot, SessionState


class _Handle(Protocol):
    def teardown(self, reason: str = ...) -> None:  # pragma: no cover - protocol
        ...


class StreamOpener(Protocol):
    """What the controller needs from a stream reader."""

    def open(
        self,
        request_text: str,
        callbacks: StreamCallbacks,
        token: Optional[CancellationToken] = None,
        *,
        ctx: Optional[LogContext] = None,
    ) -> _Handle:  # pragma: no cover - protocol
        ...


class SessionController:
    """Owns one conversation and at most one in-flight generation.

    Parameters:
        reader: Stream reader used to open connections; defaults to a
            :class:`StreamReader` over the configured HTTP endpoint.
        session_id: Identifier used in logs; random when omitted.
        logger: Optional logger override.
    """

    def __init__(
        self,
        reader: Optional[StreamOpener] = None,
        *,
        session_id: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._reader = reader if reader is not None else StreamReader()
        self.session_id = session_id or uuid4().hex[:12]
        self._logger = logger or get_logger("chatstream.session")
        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._observers = ObserverRegistry(self._logger)
        self._transcript = Transcript()
        self._generating = False
        self._last_error: Optional[StreamError] = None
        self._state = SessionState.IDLE
        self._epoch = 0
        self._active_id: Optional[str] = None
        self._handle: Optional[_Handle] = None
        self._root_token = CancellationToken()
        self._stream_token: Optional[CancellationToken] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Observation

    @property
    def generating(self) -> bool:
        return self._generating

    @property
    def last_error(self) -> Optional[StreamError]:
        return self._last_error

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Detached copies of the transcript, in conversation order."""
        with self._lock:
            return self._transcript.snapshot()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                messages=self._transcript.snapshot(),
                generating=self._generating,
                last_error=self._last_error,
                state=self._state,
                epoch=self._epoch,
            )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call ``observer`` with a fresh snapshot after every state change."""
        return self._observers.subscribe(observer)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block the calling thread until no generation is active.

        Returns ``False`` if ``timeout`` elapsed first.
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._generating, timeout)

    # ------------------------------------------------------------------
    # Commands

    def submit(self, text: str) -> bool:
        """Start a generation for ``text``.

        Returns ``False`` without touching any state when the trimmed text is
        empty or a generation is already in progress.
        """
        trimmed = text.strip() if isinstance(text, str) else ""
        with self._lock:
            if not trimmed or self._generating or self._closed:
                reason = "closed" if self._closed else ("busy" if self._generating else "empty")
                normalized_log_event(
                    self._logger, "session.submit.rejected", self._ctx(), phase="submit",
                    level=logging.DEBUG, reason=reason,
                )
                return False

            self._epoch += 1
            epoch = self._epoch
            self._transcript.append(Message.request(trimmed))
            responder = self._transcript.append(Message.response())
            responder.transition(MessageStatus.STREAMING)
            self._active_id = responder.id
            self._last_error = None
            self._generating = True
            self._state = SessionState.STREAMING
            token = self._root_token.child()
            self._stream_token = token
            ctx = self._ctx()
            normalized_log_event(self._logger, "session.submit", ctx, phase="submit", request_chars=len(trimmed))
            self._notify()

            callbacks = StreamCallbacks(
                on_frame=partial(self._on_frame, epoch),
                on_end=partial(self._on_end, epoch),
                on_error=partial(self._on_error, epoch),
            )
            try:
                handle = self._reader.open(trimmed, callbacks, token, ctx=ctx)
            except Exception as exc:  # noqa: BLE001 - reader contract violation still ends as a failed message
                self._on_error(epoch, to_stream_error(exc))
                return True
            if self._epoch == epoch and self._generating:
                self._handle = handle
            else:
                # the stream already finished inside open()
                handle.teardown("finished")
            return True

    def cancel(self) -> bool:
        """Stop the active generation, keeping the partial content.

        The responder message ends ``COMPLETED``, not ``FAILED``. Returns
        ``False`` when nothing was streaming.
        """
        with self._lock:
            message = self._active_message()
            if message is None:
                return False
            message.transition(MessageStatus.COMPLETED)
            self._finish(SessionState.COMPLETED, "session.cancel", reason="cancelled", chars=len(message.content))
            self._notify()
            return True

    def retry_last(self) -> bool:
        """Replay the request whose response failed.

        Only applies when the last message is a failed responder message and
        the one before it is a requester message: the failed message is
        removed and its request submitted again (appending a new pair).
        """
        with self._lock:
            last = self._transcript.last()
            if self._generating or self._closed or last is None:
                return False
            if last.role is not Role.RESPONDER or last.status is not MessageStatus.FAILED:
                return False
            previous = self._transcript.previous()
            if previous is None or previous.role is not Role.REQUESTER:
                normalized_log_event(
                    self._logger, "session.retry.inconsistent", self._ctx(), phase="retry",
                    level=logging.WARNING, message_id=last.id,
                )
                return False
            self._transcript.remove_failed_tail()
            normalized_log_event(self._logger, "session.retry", self._ctx(), phase="retry", attempt=self._epoch + 1)
            return self.submit(previous.content)

    def close(self) -> None:
        """Cancel any active stream and refuse further submissions."""
        with self._lock:
            self.cancel()
            self._closed = True
            self._root_token.cancel("session closed")

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reader callbacks

    def _on_frame(self, epoch: int, frame: ContentDelta) -> None:
        with self._lock:
            message = self._active_message(epoch, "frame")
            if message is None:
                return
            message.append(frame.content)
            if frame.finished:
                message.transition(MessageStatus.COMPLETED)
                self._finish(
                    SessionState.COMPLETED, "session.complete",
                    finish_reason=frame.finish_reason, chars=len(message.content),
                )
            self._notify()

    def _on_end(self, epoch: int) -> None:
        with self._lock:
            message = self._active_message(epoch, "end")
            if message is None:
                return
            message.transition(MessageStatus.COMPLETED)
            self._finish(SessionState.COMPLETED, "session.complete", finish_reason="end", chars=len(message.content))
            self._notify()

    def _on_error(self, epoch: int, error: StreamError) -> None:
        with self._lock:
            message = self._active_message(epoch, "error")
            if message is None:
                return
            self._last_error = error
            message.transition(MessageStatus.FAILED)
            self._finish(
                SessionState.FAILED, "session.error",
                level=logging.WARNING, error_code=error.code.value, error=error.message, status=error.status,
            )
            self._notify()

    # ------------------------------------------------------------------
    # Internals (lock held)

    def _active_message(self, epoch: Optional[int] = None, kind: Optional[str] = None) -> Optional[Message]:
        if epoch is not None and (epoch != self._epoch or not self._generating):
            normalized_log_event(
                self._logger, "session.stale_event", self._ctx(), phase="stream",
                level=logging.DEBUG, kind=kind, event_epoch=epoch,
            )
            return None
        if not self._generating or self._active_id is None:
            return None
        return self._transcript.find(self._active_id)

    def _finish(self, state: SessionState, event: str, *, level: int = logging.INFO, **fields: object) -> None:
        ctx = self._ctx()
        handle, self._handle = self._handle, None
        token, self._stream_token = self._stream_token, None
        self._generating = False
        self._active_id = None
        self._state = state
        if handle is not None:
            handle.teardown(state.value)
        if token is not None:
            token.cancel(state.value)
            self._root_token.unlink_child(token)
        normalized_log_event(self._logger, event, ctx, phase="finalize", level=level, **fields)
        self._idle.notify_all()

    def _ctx(self) -> LogContext:
        return LogContext(session_id=self.session_id, epoch=self._epoch or None, message_id=self._active_id)

    def _notify(self) -> None:
        self._observers.notify(self.snapshot())


__all__ = ["SessionController", "StreamOpener"]
