"""Shared helpers for stream reader tests.

``Recorder`` collects callback invocations in order; ``make_reader`` builds a
reader over an ``httpx.MockTransport`` so no socket is opened. ``StallingServer``
is the exception: a real loopback listener for tests that must block in
``recv``.
"""
from __future__ import annotations

import socket
import threading
from typing import Callable, List, Optional, Tuple

import httpx

from chatstream.base.streaming import HttpxSseTransport, StreamCallbacks, StreamReader
from chatstream.base.timeouts import TimeoutConfig
from chatstream.config import ClientSettings

BASE_URL = "http://testserver"


def inline(fn: Callable[[], None]) -> None:
    fn()


class Recorder:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, object]] = []

    def callbacks(self) -> StreamCallbacks:
        return StreamCallbacks(
            on_frame=lambda frame: self.calls.append(("frame", frame)),
            on_end=lambda: self.calls.append(("end", None)),
            on_error=lambda error: self.calls.append(("error", error)),
        )

    @property
    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]

    @property
    def text(self) -> str:
        return "".join(frame.content for kind, frame in self.calls if kind == "frame")

    @property
    def errors(self) -> list:
        return [value for kind, value in self.calls if kind == "error"]


def sse_response(body: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, headers={"content-type": "text/event-stream"}, content=body.encode("utf-8"))


def make_reader(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    spawn: Optional[Callable[[Callable[[], None]], object]] = inline,
) -> StreamReader:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    transport = HttpxSseTransport(ClientSettings(base_url=BASE_URL), client=client, timeouts=TimeoutConfig())
    return StreamReader(transport, spawn=spawn)


class BlockingStream(httpx.SyncByteStream):
    """Response body that sends ``first`` and then stalls until closed.

    ``after`` optionally raises once the stall is released, to simulate a
    read timeout instead of a cancellation.
    """

    def __init__(self, first: bytes, *, stall_seconds: float = 5.0, after: Optional[BaseException] = None) -> None:
        self.first = first
        self.stall_seconds = stall_seconds
        self.after = after
        self.stalled = threading.Event()
        self.released = threading.Event()

    def __iter__(self):
        yield self.first
        self.stalled.set()
        self.released.wait(self.stall_seconds)
        if self.after is not None and not self.released.is_set():
            raise self.after

    def close(self) -> None:
        self.released.set()


class StallingServer:
    """Loopback HTTP server that sends ``first`` as one SSE chunk and stalls.

    The connection stays open until the test leaves the ``with`` block, so a
    client read after ``first`` blocks in the kernel until something else
    unblocks it.
    """

    def __init__(self, first: bytes, *, stall_seconds: float = 10.0) -> None:
        self.first = first
        self.stall_seconds = stall_seconds
        self.release = threading.Event()
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.bind(("127.0.0.1", 0))
        self._listener.listen(1)
        self._thread = threading.Thread(target=self._serve, name="stalling-server", daemon=True)

    @property
    def base_url(self) -> str:
        host, port = self._listener.getsockname()
        return f"http://{host}:{port}"

    def _serve(self) -> None:
        conn, _ = self._listener.accept()
        with conn:
            request = b""
            while b"\r\n\r\n" not in request:
                data = conn.recv(4096)
                if not data:
                    return
                request += data
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: text/event-stream\r\n"
                b"Transfer-Encoding: chunked\r\n\r\n"
                + f"{len(self.first):x}\r\n".encode("ascii")
                + self.first
                + b"\r\n"
            )
            self.release.wait(self.stall_seconds)

    def __enter__(self) -> "StallingServer":
        self._thread.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release.set()
        self._thread.join(5)
        self._listener.close()
