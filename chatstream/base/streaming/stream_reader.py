"""Stream reader: owns one push connection per ``open`` call.

Responsibilities:
  * Open the transport for a request text on a worker thread.
  * Decode lines into frames and hand them to the session callbacks, one at a
    time and in arrival order.
  * Turn every failure (error payload, undecodable frame, transport failure,
    disconnect before a terminal marker) into exactly one ``on_error`` call.
  * Tear the connection down deterministically.

No exception raised by the transport ever reaches the caller of ``open``.
After :meth:`StreamHandle.teardown` returns no further callback is started;
one already running on the worker thread finishes, and the session discards
its effect through its epoch check.
"""
from __future__ import annotations

from dataclasses import dataclass
import itertools
import logging
import threading
import time
from typing import Any, Callable, Optional

from ..cancellation import CancellationToken
from ..errors import (
    CONNECTION_ERROR_MESSAGE,
    ErrorCode,
    FrameDecodeError,
    StreamError,
    to_stream_error,
)
from ..logging import LogContext, get_logger, normalized_log_event
from .frame_codec import decode_event, iter_events
from .frames import ContentDelta, EndOfStream, ErrorFrame
from .streaming_metrics import StreamMetrics
from .transport import HttpxSseTransport, SseTransport

Spawner = Callable[[Callable[[], None]], Any]

_thread_ids = itertools.count(1)


def spawn_daemon_thread(target: Callable[[], None]) -> threading.Thread:
    """Default spawner: run ``target`` on a fresh daemon thread."""
    thread = threading.Thread(target=target, name=f"chatstream-reader-{next(_thread_ids)}", daemon=True)
    thread.start()
    return thread


@dataclass(frozen=True)
class StreamCallbacks:
    """Session entry points invoked by the reader.

    Attributes:
        on_frame: a content delta arrived (it may carry the terminal marker).
        on_end: the ``event: end`` marker arrived.
        on_error: the stream failed; called at most once per handle.
    """

    on_frame: Callable[[ContentDelta], None]
    on_end: Callable[[], None]
    on_error: Callable[[StreamError], None]


class StreamHandle:
    """Handle to one open stream; supports idempotent :meth:`teardown`."""

    def __init__(self, request_text: str, token: CancellationToken) -> None:
        self.request_text = request_text
        self.token = token
        self._closed = threading.Event()
        self._done = threading.Event()

    @property
    def closed(self) -> bool:
        """Whether teardown was requested (by the caller or by the reader)."""
        return self._closed.is_set()

    @property
    def done(self) -> bool:
        """Whether the worker has released the transport."""
        return self._done.is_set()

    def teardown(self, reason: str = "teardown") -> None:
        """Stop delivering callbacks and release the connection.

        Safe to call repeatedly and from any thread, including from inside a
        callback.
        """
        if self._closed.is_set():
            return
        self._closed.set()
        self.token.cancel(reason)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until the worker finished; returns ``False`` on timeout."""
        return self._done.wait(timeout)

    def _deliver(self, callback: Callable[..., None], *args: Any) -> bool:
        if self._closed.is_set():
            return False
        callback(*args)
        return True

    def _finish(self) -> None:
        self._closed.set()
        self._done.set()


class StreamReader:
    """Opens push connections and forwards decoded frames.

    Parameters:
        transport: Line source; defaults to :class:`HttpxSseTransport`.
        spawn: How the blocking read loop is scheduled. Defaults to a daemon
            thread; passing ``lambda fn: fn()`` runs it inline, which makes
            ``open`` deliver every callback before it returns.
        logger: Optional logger override.
    """

    def __init__(
        self,
        transport: Optional[SseTransport] = None,
        *,
        spawn: Optional[Spawner] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._transport = transport or HttpxSseTransport()
        self._spawn = spawn or spawn_daemon_thread
        self._logger = logger or get_logger("chatstream.reader")

    @property
    def transport(self) -> SseTransport:
        return self._transport

    def open(
        self,
        request_text: str,
        callbacks: StreamCallbacks,
        token: Optional[CancellationToken] = None,
        *,
        ctx: Optional[LogContext] = None,
    ) -> StreamHandle:
        """Start streaming the response for ``request_text``."""
        handle = StreamHandle(request_text, token or CancellationToken())
        ctx = ctx or LogContext()
        ctx.url = self._transport.url
        normalized_log_event(self._logger, "stream.reader.start", ctx, phase="start", request_chars=len(request_text))
        if handle.token.cancelled:
            handle._finish()
            return handle
        try:
            self._spawn(lambda: self._pump(handle, callbacks, ctx))
        except RuntimeError as exc:
            # thread could not be started; report it like any stream failure
            self._fail(handle, callbacks, ctx, to_stream_error(exc))
            handle._finish()
        return handle

    # ------------------------------------------------------------------
    # Worker side

    def _pump(self, handle: StreamHandle, callbacks: StreamCallbacks, ctx: LogContext) -> None:
        metrics = StreamMetrics()
        t0 = time.perf_counter()
        outcome = "error"
        error: Optional[StreamError] = None
        try:
            outcome, error = self._consume(handle, callbacks, ctx, metrics, t0)
        except Exception as exc:  # noqa: BLE001 - every failure funnels into on_error
            if handle.token.cancelled:
                outcome = "cancelled"
            else:
                error = to_stream_error(exc)
                self._fail(handle, callbacks, ctx, error)
        finally:
            metrics.total_duration_ms = (time.perf_counter() - t0) * 1000.0
            handle._finish()
            self._log_outcome(ctx, outcome, metrics, error)

    def _consume(
        self,
        handle: StreamHandle,
        callbacks: StreamCallbacks,
        ctx: LogContext,
        metrics: StreamMetrics,
        t0: float,
    ) -> tuple[str, Optional[StreamError]]:
        with self._transport.connect(handle.request_text, handle.token) as lines:
            for event in iter_events(lines):
                if handle.closed:
                    return "cancelled", None
                try:
                    frame = decode_event(event)
                except FrameDecodeError as exc:
                    normalized_log_event(
                        self._logger,
                        "frame.decode.error",
                        ctx,
                        phase="stream",
                        error_code=ErrorCode.DECODE.value,
                        level=logging.WARNING,
                        detail=str(exc),
                    )
                    error = to_stream_error(exc)
                    self._fail(handle, callbacks, ctx, error)
                    return "error", error
                if frame is None:
                    continue
                if isinstance(frame, EndOfStream):
                    handle._deliver(callbacks.on_end)
                    return "end", None
                if isinstance(frame, ErrorFrame):
                    error = StreamError(code=ErrorCode.PROTOCOL, message=frame.message, status=frame.code)
                    self._fail(handle, callbacks, ctx, error)
                    return "error", error
                metrics.record_delta(frame.content, (time.perf_counter() - t0) * 1000.0)
                handle._deliver(callbacks.on_frame, frame)
                if frame.finished:
                    return "completed", None
        if handle.closed:
            return "cancelled", None
        # closed by the peer without a terminal marker
        error = StreamError(code=ErrorCode.TRANSPORT, message=CONNECTION_ERROR_MESSAGE)
        self._fail(handle, callbacks, ctx, error)
        return "error", error

    def _fail(self, handle: StreamHandle, callbacks: StreamCallbacks, ctx: LogContext, error: StreamError) -> None:
        try:
            handle._deliver(callbacks.on_error, error)
        except Exception:
            self._logger.exception("stream error callback failed (%s)", ctx.to_dict())
        handle._closed.set()

    def _log_outcome(
        self,
        ctx: LogContext,
        outcome: str,
        metrics: StreamMetrics,
        error: Optional[StreamError],
    ) -> None:
        if outcome == "cancelled":
            event = "stream.reader.cancelled"
        elif error is not None:
            event = "stream.reader.error"
        else:
            event = "stream.reader.end"
        normalized_log_event(
            self._logger,
            event,
            ctx,
            phase="finalize",
            emitted=metrics.emitted > 0,
            error_code=error.code.value if error else None,
            level=logging.WARNING if error else logging.INFO,
            outcome=outcome,
            error=error.message if error else None,
            status=error.status if error else None,
            **metrics.to_dict(),
        )


__all__ = [
    "StreamCallbacks",
    "StreamHandle",
    "StreamReader",
    "spawn_daemon_thread",
]
