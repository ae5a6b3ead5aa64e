"""Shared HTTP client pool.

Purpose:
    Keep one reusable ``httpx.Client`` per (base URL, purpose) so successive
    generations reuse connections instead of allocating a client per submit.
    Timeouts derive from :func:`get_timeout_config`.

Lifecycle & cleanup:
    - Clients are created lazily and cached.
    - All clients are closed at interpreter exit via ``atexit``. Tests may
      call :func:`close_all_clients` explicitly.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import suppress
from typing import Dict, Optional, Tuple

import httpx

from ..timeouts import get_timeout_config

_CLIENTS: Dict[Tuple[Optional[str], str], httpx.Client] = {}
_LOCK = threading.RLock()


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.Client:
    """Return a pooled ``httpx.Client`` for the given base URL and purpose.

    Parameters:
        base_url: API base URL set on the client so callers can issue relative
            requests. ``None`` groups clients under a shared key.
        purpose: A short string discriminating separate pools (e.g. "stream").

    Thread-safety:
        Safe for concurrent use; per-key creation is guarded by a lock.
    """
    key = (base_url, purpose)
    client = _CLIENTS.get(key)
    if client is not None and not client.is_closed:
        return client

    with _LOCK:
        client = _CLIENTS.get(key)
        if client is not None and not client.is_closed:
            return client
        timeout = get_timeout_config().to_httpx()
        client = httpx.Client(base_url=base_url, timeout=timeout) if base_url else httpx.Client(timeout=timeout)
        _CLIENTS[key] = client
        return client


def close_all_clients() -> None:
    """Close and clear all pooled HTTP clients."""
    with _LOCK:
        for c in _CLIENTS.values():
            # nothing useful to do with a failed close during shutdown
            with suppress(Exception):
                c.close()
        _CLIENTS.clear()


atexit.register(close_all_clients)

__all__ = ["get_httpx_client", "close_all_clients"]
