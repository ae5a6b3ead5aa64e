"""Push-connection transports for the stream reader.

A transport opens one server-to-client stream for a request text and yields
its raw text lines. It is the only place that knows about HTTP; the reader
above it only sees lines, and the codec turns lines into frames.

Cancellation
------------
``connect`` registers a release hook on the cancellation token. Cancelling
the token from another thread shuts down the response socket and then closes
the HTTP response. Closing alone does not wake a read already blocked in
``recv``; the shutdown does.
"""

from __future__ import annotations

import socket
from contextlib import contextmanager, suppress
from typing import ContextManager, Iterator, Optional, Protocol, runtime_checkable

import httpx

from ...config import ClientSettings
from ..cancellation import CancellationToken
from ..http.client import get_httpx_client
from ..timeouts import TimeoutConfig, get_timeout_config

SSE_MEDIA_TYPE = "text/event-stream"


def release_response(resp: httpx.Response) -> None:
    """Unblock a pending read on ``resp`` and close it. Safe from any thread."""
    network_stream = resp.extensions.get("network_stream")
    sock = network_stream.get_extra_info("socket") if network_stream is not None else None
    if sock is not None:
        with suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)
    resp.close()


@runtime_checkable
class SseTransport(Protocol):
    """Opens a push stream and yields its lines."""

    @property
    def url(self) -> str:  # pragma: no cover - protocol
        ...

    def connect(self, request_text: str, token: CancellationToken) -> ContextManager[Iterator[str]]:  # pragma: no cover - protocol
        ...


class HttpxSseTransport:
    """``GET <chat_url>?<query_param>=<text>`` over a pooled ``httpx.Client``.

    Parameters:
        settings: Endpoint settings; defaults to :meth:`ClientSettings.from_config`.
        client: Explicit client (tests, custom transports). When omitted a
            pooled client from :func:`get_httpx_client` is used.
        timeouts: Connect and idle timeouts; defaults to :func:`get_timeout_config`.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        client: Optional[httpx.Client] = None,
        timeouts: Optional[TimeoutConfig] = None,
    ) -> None:
        self._settings = settings or ClientSettings.from_config()
        self._client = client
        self._timeouts = timeouts

    @property
    def url(self) -> str:
        return self._settings.chat_url

    def _get_client(self) -> httpx.Client:
        return self._client or get_httpx_client(self._settings.base_url, "stream")

    @contextmanager
    def connect(self, request_text: str, token: CancellationToken) -> Iterator[Iterator[str]]:
        """Open the stream; yields an iterator over response lines.

        Raises:
            httpx.HTTPStatusError: non-2xx response.
            httpx.TransportError: connection failures and read timeouts.
        """
        timeouts = self._timeouts or get_timeout_config()
        with self._get_client().stream(
            "GET",
            self.url,
            params={self._settings.query_param: request_text},
            headers={"Accept": SSE_MEDIA_TYPE, "Cache-Control": "no-cache"},
            timeout=timeouts.to_httpx(),
        ) as resp:
            token.add_callback(lambda: release_response(resp))
            resp.raise_for_status()
            yield resp.iter_lines()


__all__ = ["SseTransport", "HttpxSseTransport", "SSE_MEDIA_TYPE", "release_response"]
