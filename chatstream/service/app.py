"""
Development mock of the generation backend.

Purpose
-------
Serve the wire protocol the client consumes so the CLI and integration tests
have something real to talk to:

- ``GET /api/chat?message=...`` streams a canned response word by word as
  ``data:`` frames, then a ``finish_reason: "stop"`` frame and ``event: end``.
- ``GET /api/chat/error`` streams a single error payload (500) and closes.
- ``GET /api/health`` liveness probe.

External dependencies
---------------------
FastAPI (routing, ``StreamingResponse``, CORS middleware).

Content
-------
Which canned response is sent is random per request; pass ``seed`` for a
reproducible sequence and zero delays in tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
import random
import time
from typing import Dict, Iterator, List, Optional, Tuple

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from ..base.logging import get_logger, log_event
from ..base.streaming.frame_codec import encode_chunk, encode_end, encode_error
from ..base.streaming.transport import SSE_MEDIA_TYPE
from ..config.defaults import (
    CHATSTREAM_DEFAULT_CHAT_PATH,
    CHATSTREAM_SERVER_CHUNK_DELAY_MS,
    CHATSTREAM_SERVER_DEFAULT_CORS_ORIGINS,
    CHATSTREAM_SERVER_ERROR_DELAY_MS,
    CHATSTREAM_SERVER_INITIAL_DELAY_MS,
)

MOCK_RESPONSES: Tuple[str, ...] = (
    "Hello! How can I help you today?",
    "I'm a mock AI assistant powered by SSE (Server-Sent Events).",
    "This is a demonstration of how to implement streaming responses in a client application.",
    "You can see that my responses are delivered in real-time, one chunk at a time.",
    "Feel free to ask me any questions, and I'll respond with a simulated streaming experience.",
    "To test the streaming functionality, you can send different messages and see how I respond.",
    "You can also test the stop functionality by cancelling the generation.",
    "This will abort the SSE connection and stop the streaming response.",
    "Thank you for testing this streaming chat application!",
)

SSE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@dataclass
class MockBackendSettings:
    """Knobs for the mock backend.

    Attributes:
        responses: Candidate responses; one is picked per request.
        initial_delay_ms: Pause before the first chunk.
        chunk_delay_ms: Inclusive (min, max) pause between chunks.
        error_delay_ms: Pause before the error payload on the error route.
        seed: Seed for response and delay selection.
    """

    responses: List[str] = field(default_factory=lambda: list(MOCK_RESPONSES))
    initial_delay_ms: int = CHATSTREAM_SERVER_INITIAL_DELAY_MS
    chunk_delay_ms: Tuple[int, int] = CHATSTREAM_SERVER_CHUNK_DELAY_MS
    error_delay_ms: int = CHATSTREAM_SERVER_ERROR_DELAY_MS
    seed: Optional[int] = None


def _sleep_ms(ms: float) -> None:
    if ms > 0:
        time.sleep(ms / 1000.0)


def iter_response_frames(text: str, rng: random.Random, settings: MockBackendSettings) -> Iterator[str]:
    """Yield the SSE frames for ``text``: one per word, final frame, end marker."""
    words = text.split(" ")
    _sleep_ms(settings.initial_delay_ms)
    for index, word in enumerate(words):
        content = word + (" " if index < len(words) - 1 else "")
        yield encode_chunk(content, frame_id=int(time.time() * 1000))
        low, high = settings.chunk_delay_ms
        _sleep_ms(rng.randint(low, high))
    yield encode_chunk("", finish_reason="stop", frame_id=int(time.time() * 1000))
    yield encode_end()


def create_app(settings: Optional[MockBackendSettings] = None) -> FastAPI:
    """Build the mock backend application."""
    settings = settings or MockBackendSettings()
    rng = random.Random(settings.seed)
    logger = get_logger("chatstream.mock_backend")
    app = FastAPI(title="chatstream mock backend", version="0.1.0")

    origins = os.getenv("CHATSTREAM_SERVER_CORS_ORIGINS", CHATSTREAM_SERVER_DEFAULT_CORS_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def get_health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get(CHATSTREAM_DEFAULT_CHAT_PATH)
    def get_chat(message: str = Query(default="")) -> StreamingResponse:
        """Stream one randomly chosen canned response."""
        log_event(logger, "mock.chat.request", message_chars=len(message))
        text = rng.choice(settings.responses) if settings.responses else ""

        def _frames() -> Iterator[str]:
            try:
                yield from iter_response_frames(text, rng, settings)
            except GeneratorExit:
                log_event(logger, "mock.chat.disconnect", level=logging.INFO)
                raise

        return StreamingResponse(_frames(), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)

    @app.get(f"{CHATSTREAM_DEFAULT_CHAT_PATH}/error")
    def get_chat_error() -> StreamingResponse:
        """Stream a single error payload, then close without a terminal marker."""

        def _frames() -> Iterator[str]:
            _sleep_ms(settings.error_delay_ms)
            yield encode_error("Internal Server Error", 500)

        return StreamingResponse(_frames(), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)

    return app


app = create_app()


def get_app() -> FastAPI:
    """Return the module-level application (used by uvicorn and tests)."""
    return app


__all__ = [
    "MOCK_RESPONSES",
    "MockBackendSettings",
    "iter_response_frames",
    "create_app",
    "get_app",
    "app",
]
