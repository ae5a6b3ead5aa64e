"""Unified timeout configuration for the stream transport.

TimeoutConfig
    Dataclass capturing normalized timeout values in seconds.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use and again whenever the relevant variables change. Supported
    environment variables (all optional):
        CHATSTREAM_TIMEOUT_CONNECT_SECONDS
        CHATSTREAM_TIMEOUT_IDLE_SECONDS

Inactivity
----------
By default there is no idle timeout: a stalled stream waits until the
server sends a terminal marker or error, or the caller cancels. Setting
``CHATSTREAM_TIMEOUT_IDLE_SECONDS`` enables one; when it fires the read raises
``httpx.ReadTimeout`` and the generation fails through the transport error
path.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

import httpx

from ..config.defaults import (
    CHATSTREAM_CONNECT_TIMEOUT_SECONDS,
    CHATSTREAM_IDLE_TIMEOUT_SECONDS,
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        connect_timeout_seconds: Timeout for establishing the connection and
            receiving response headers.
        idle_timeout_seconds: Maximum wait for the next chunk of the push
            stream. ``None`` waits forever.
    """

    connect_timeout_seconds: float = CHATSTREAM_CONNECT_TIMEOUT_SECONDS
    idle_timeout_seconds: float | None = CHATSTREAM_IDLE_TIMEOUT_SECONDS

    def to_httpx(self) -> httpx.Timeout:
        """Return the equivalent ``httpx.Timeout`` (read timeout = idle timeout)."""
        return httpx.Timeout(
            connect=self.connect_timeout_seconds,
            read=self.idle_timeout_seconds,
            write=self.connect_timeout_seconds,
            pool=self.connect_timeout_seconds,
        )


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float | None) -> float | None:
    """Parse an environment variable as a positive float with a fallback default."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
        return val if val > 0 else default
    except ValueError:
        return default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig` instance."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(
        [
            os.getenv("CHATSTREAM_TIMEOUT_CONNECT_SECONDS", ""),
            os.getenv("CHATSTREAM_TIMEOUT_IDLE_SECONDS", ""),
        ]
    )
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED

    connect = _parse_env_float("CHATSTREAM_TIMEOUT_CONNECT_SECONDS", CHATSTREAM_CONNECT_TIMEOUT_SECONDS)
    idle = _parse_env_float("CHATSTREAM_TIMEOUT_IDLE_SECONDS", CHATSTREAM_IDLE_TIMEOUT_SECONDS)
    _CACHED = TimeoutConfig(
        connect_timeout_seconds=float(connect),
        idle_timeout_seconds=float(idle) if idle is not None else None,
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
]
