"""chatstream.config.defaults
==========================

Central place for small, stable default values used across chatstream and
its development tooling. These defaults can be overridden via environment
variables or an external configuration file.

This module intentionally imports nothing from other chatstream packages to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Generation backend ----
CHATSTREAM_DEFAULT_BASE_URL = "http://localhost:3001"
CHATSTREAM_DEFAULT_CHAT_PATH = "/api/chat"
# Name of the single query parameter carrying the request text.
CHATSTREAM_DEFAULT_QUERY_PARAM = "message"

# ---- Timeouts (seconds) ----
CHATSTREAM_CONNECT_TIMEOUT_SECONDS = 10.0
# No inactivity timeout unless configured.
CHATSTREAM_IDLE_TIMEOUT_SECONDS = None

# ---- Development mock backend ----
CHATSTREAM_SERVER_DEFAULT_HOST = "127.0.0.1"
CHATSTREAM_SERVER_DEFAULT_PORT = 3001
CHATSTREAM_SERVER_DEFAULT_CORS_ORIGINS = "*"
# Pause before the first chunk, then a random pause between chunks (ms).
CHATSTREAM_SERVER_INITIAL_DELAY_MS = 300
CHATSTREAM_SERVER_CHUNK_DELAY_MS = (50, 200)
CHATSTREAM_SERVER_ERROR_DELAY_MS = 1000


__all__ = [
    "CHATSTREAM_DEFAULT_BASE_URL",
    "CHATSTREAM_DEFAULT_CHAT_PATH",
    "CHATSTREAM_DEFAULT_QUERY_PARAM",
    "CHATSTREAM_CONNECT_TIMEOUT_SECONDS",
    "CHATSTREAM_IDLE_TIMEOUT_SECONDS",
    "CHATSTREAM_SERVER_DEFAULT_HOST",
    "CHATSTREAM_SERVER_DEFAULT_PORT",
    "CHATSTREAM_SERVER_DEFAULT_CORS_ORIGINS",
    "CHATSTREAM_SERVER_INITIAL_DELAY_MS",
    "CHATSTREAM_SERVER_CHUNK_DELAY_MS",
    "CHATSTREAM_SERVER_ERROR_DELAY_MS",
]
