from __future__ import annotations

import os

import uvicorn

from ..config.defaults import CHATSTREAM_SERVER_DEFAULT_HOST, CHATSTREAM_SERVER_DEFAULT_PORT


def _parse_port(value: str | None, default: int) -> int:
    """Best-effort parse of a port from string, falling back to a sane default."""
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def main() -> None:
    """Start the mock generation backend.

    Environment:
    - CHATSTREAM_SERVER_HOST: interface to bind (default "127.0.0.1")
    - CHATSTREAM_SERVER_PORT: port to bind (default 3001)
    - CHATSTREAM_SERVER_RELOAD: "true" to enable auto-reload (default off)
    """
    host = os.getenv("CHATSTREAM_SERVER_HOST", CHATSTREAM_SERVER_DEFAULT_HOST)
    port = _parse_port(os.getenv("CHATSTREAM_SERVER_PORT"), CHATSTREAM_SERVER_DEFAULT_PORT)
    reload_enabled = os.getenv("CHATSTREAM_SERVER_RELOAD", "false").lower() == "true"

    uvicorn.run(
        "chatstream.service.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
