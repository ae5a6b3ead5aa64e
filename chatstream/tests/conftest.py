"""Pytest configuration for the chatstream test suite.

Every test starts from built-in defaults: ``CHATSTREAM_*`` variables are
removed, the dotenv loader points at a missing file and the config and
timeout caches are reset.
"""

from __future__ import annotations

import logging
import os
from typing import Iterator, List

import pytest

from chatstream.base.http.client import close_all_clients
from chatstream.config import reset_config_cache

from .fakes import FakeStreamReader


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Run each test against defaults only."""
    for name in list(os.environ):
        if name.startswith("CHATSTREAM_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    reset_config_cache()
    yield
    # the dotenv loader writes to os.environ directly
    for name in list(os.environ):
        if name.startswith("CHATSTREAM_"):
            os.environ.pop(name, None)
    reset_config_cache()


@pytest.fixture(scope="session", autouse=True)
def close_http_clients_after_session() -> Iterator[None]:
    yield
    close_all_clients()


@pytest.fixture()
def fake_reader() -> FakeStreamReader:
    return FakeStreamReader()


@pytest.fixture()
def log_records(monkeypatch: pytest.MonkeyPatch) -> Iterator[List[logging.LogRecord]]:
    """Capture records emitted on the ``chatstream`` logger tree.

    The base logger does not propagate to root, so the capture handler is
    attached to it directly. The level comes from the environment because
    ``get_logger`` re-applies it.
    """
    monkeypatch.setenv("CHATSTREAM_LOG_LEVEL", "DEBUG")
    records: List[logging.LogRecord] = []
    handler = logging.Handler(level=logging.DEBUG)
    handler.emit = lambda record: records.append(record)  # type: ignore[method-assign]
    logger = logging.getLogger("chatstream")
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)


@pytest.fixture()
def backend_settings():
    from chatstream.service.app import MockBackendSettings

    return MockBackendSettings(
        responses=["Hello world"], initial_delay_ms=0, chunk_delay_ms=(0, 0), error_delay_ms=0, seed=7
    )


@pytest.fixture()
def backend_client(backend_settings):
    """``TestClient`` over a zero-delay mock backend; it is also an ``httpx.Client``."""
    from fastapi.testclient import TestClient

    from chatstream.service.app import create_app

    client = TestClient(create_app(backend_settings))
    yield client
    client.close()


@pytest.fixture()
def backend_controller(backend_client):
    """Build a controller wired to the mock backend.

    Call it with ``chat_path`` to target the error route and ``spawn=None``
    to use the real worker thread instead of running streams inline.
    """
    from chatstream.base.streaming import HttpxSseTransport, StreamReader
    from chatstream.base.timeouts import TimeoutConfig
    from chatstream.config import ClientSettings
    from chatstream.session import SessionController

    def _inline(fn):
        fn()

    def _build(chat_path: str = "/api/chat", spawn=_inline) -> SessionController:
        settings = ClientSettings(base_url="http://testserver", chat_path=chat_path)
        transport = HttpxSseTransport(settings, client=backend_client, timeouts=TimeoutConfig())
        return SessionController(StreamReader(transport, spawn=spawn))

    return _build
