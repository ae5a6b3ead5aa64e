"""Stream reader over a mocked HTTP transport.

Most tests run the read loop inline so every callback has fired by the time
``open`` returns. The cancellation tests use the real worker thread, and the
stalled-server tests read from a real loopback socket.
"""
from __future__ import annotations

import json
import threading

import httpx

from chatstream.base.cancellation import CancellationToken
from chatstream.base.errors import CONNECTION_ERROR_MESSAGE, DECODE_ERROR_MESSAGE, ErrorCode
from chatstream.base.logging import LogContext
from chatstream.base.models import MessageStatus
from chatstream.base.streaming import (
    HttpxSseTransport,
    StreamCallbacks,
    StreamReader,
    encode_chunk,
    encode_end,
    encode_error,
)
from chatstream.base.timeouts import TimeoutConfig
from chatstream.config import ClientSettings
from chatstream.session import SessionController

from .helpers import BlockingStream, Recorder, StallingServer, make_reader, sse_response


def _wire(*parts: str) -> str:
    return "".join(parts)


def test_request_shape():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url.copy_with(query=None))
        seen["message"] = request.url.params["message"]
        seen["accept"] = request.headers["accept"]
        return sse_response(_wire(encode_chunk("", "stop")))

    rec = Recorder()
    make_reader(handler).open("hello & world?", rec.callbacks())
    assert seen == {  # nosec B101
        "url": "http://testserver/api/chat",
        "message": "hello & world?",
        "accept": "text/event-stream",
    }


def test_deltas_then_finish_reason():
    body = _wire(encode_chunk("Hello", frame_id=1), encode_chunk(" "), encode_chunk("world"), encode_chunk("", "stop"))
    rec = Recorder()
    handle = make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "frame", "frame", "frame"]  # nosec B101
    assert rec.text == "Hello world"  # nosec B101
    assert rec.calls[-1][1].finished  # nosec B101
    assert handle.done and handle.closed  # nosec B101


def test_frames_after_finish_are_not_read():
    body = _wire(encode_chunk("a", "stop"), encode_chunk("ignored"), encode_error("ignored", 500))
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame"]  # nosec B101


def test_end_event_is_terminal():
    body = _wire(encode_chunk("partial"), encode_end(), encode_chunk("after end"))
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "end"]  # nosec B101


def test_error_payload_reported_once():
    body = _wire(encode_chunk("a"), encode_error("Internal Server Error", 500), encode_chunk("b"))
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "error"]  # nosec B101
    (error,) = rec.errors
    assert error.code is ErrorCode.PROTOCOL  # nosec B101
    assert error.message == "Internal Server Error" and error.status == 500  # nosec B101



def test_empty_error_object_fails_the_stream():
    body = _wire(encode_chunk("a"), 'data: {"error": {}}\n\n', encode_chunk("b"))
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "error"] and rec.text == "a"  # nosec B101
    (error,) = rec.errors
    assert error.code is ErrorCode.PROTOCOL and error.message == "Server error"  # nosec B101
    assert error.status is None  # nosec B101


def test_decode_error_is_handled_like_protocol_error(log_records):
    body = _wire(encode_chunk("a"), "data: {not json\n\n", encode_chunk("b"))
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "error"]  # nosec B101
    assert rec.errors[0].code is ErrorCode.DECODE  # nosec B101
    assert rec.errors[0].message == DECODE_ERROR_MESSAGE  # nosec B101
    assert any("frame.decode.error" in r.getMessage() for r in log_records)  # nosec B101


def test_disconnect_without_terminal_marker_is_an_error():
    rec = Recorder()
    make_reader(lambda r: sse_response(_wire(encode_chunk("Hel")))).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "error"]  # nosec B101
    assert rec.errors[0].code is ErrorCode.TRANSPORT  # nosec B101
    assert rec.errors[0].message == CONNECTION_ERROR_MESSAGE  # nosec B101


def test_incomplete_trailing_frame_is_an_error():
    rec = Recorder()
    make_reader(lambda r: sse_response('data: {"content": "x", "finish_reason": "stop"}')).open("x", rec.callbacks())
    assert rec.kinds == ["error"]  # nosec B101


def test_unknown_events_and_comments_are_skipped():
    body = ": ping\n\nevent: heartbeat\ndata: {}\n\n" + encode_chunk("ok", "stop")
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks())
    assert rec.kinds == ["frame"] and rec.text == "ok"  # nosec B101


def test_http_error_status():
    rec = Recorder()
    make_reader(lambda r: httpx.Response(500, text="oops")).open("x", rec.callbacks())
    (error,) = rec.errors
    assert error.code is ErrorCode.HTTP_STATUS and error.status == 500  # nosec B101
    assert error.message == CONNECTION_ERROR_MESSAGE  # nosec B101


def test_connection_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    rec = Recorder()
    make_reader(handler).open("x", rec.callbacks())
    assert rec.kinds == ["error"] and rec.errors[0].code is ErrorCode.TRANSPORT  # nosec B101


def test_read_timeout_takes_the_transport_error_path():
    def handler(request: httpx.Request) -> httpx.Response:
        stream = BlockingStream(
            encode_chunk("slow").encode(), stall_seconds=0.01, after=httpx.ReadTimeout("idle", request=request)
        )
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, stream=stream)

    rec = Recorder()
    make_reader(handler).open("x", rec.callbacks())
    assert rec.kinds == ["frame", "error"]  # nosec B101
    assert rec.errors[0].code is ErrorCode.TIMEOUT  # nosec B101
    assert rec.errors[0].message == CONNECTION_ERROR_MESSAGE  # nosec B101


def test_pre_cancelled_token_never_connects():
    calls = []

    def handler(request):
        calls.append(request)
        return sse_response(encode_chunk("", "stop"))

    token = CancellationToken()
    token.cancel("early")
    rec = Recorder()
    handle = make_reader(handler).open("x", rec.callbacks(), token)
    assert calls == [] and rec.calls == [] and handle.done  # nosec B101


def test_failing_error_callback_is_logged(log_records):
    def on_error(_error):
        raise RuntimeError("consumer bug")

    rec = Recorder()
    cbs = rec.callbacks()
    from chatstream.base.streaming import StreamCallbacks

    broken = StreamCallbacks(on_frame=cbs.on_frame, on_end=cbs.on_end, on_error=on_error)
    handle = make_reader(lambda r: httpx.Response(503)).open("x", broken)
    assert handle.done  # nosec B101
    assert any("stream error callback failed" in r.getMessage() for r in log_records)  # nosec B101


def test_outcome_is_logged_with_metrics(log_records):
    body = _wire(encode_chunk("ab"), encode_chunk("c", "stop"))
    rec = Recorder()
    make_reader(lambda r: sse_response(body)).open("x", rec.callbacks(), ctx=LogContext(session_id="s"))
    payloads = [json.loads(r.getMessage()) for r in log_records if r.getMessage().startswith("{")]
    end = next(p for p in payloads if p["event"] == "stream.reader.end")
    assert end["emitted_count"] == 2 and end["chars"] == 3  # nosec B101
    assert end["session_id"] == "s" and end["url"] == "http://testserver/api/chat"  # nosec B101
    assert end["outcome"] == "completed" and end["emitted"] is True  # nosec B101
    assert any(p["event"] == "stream.reader.start" for p in payloads)  # nosec B101


def _live_reader(base_url: str, client: httpx.Client, reader_cls=StreamReader) -> StreamReader:
    transport = HttpxSseTransport(ClientSettings(base_url=base_url), client=client, timeouts=TimeoutConfig())
    return reader_cls(transport)


class _HandleKeepingReader(StreamReader):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.handles = []

    def open(self, *args, **kwargs):
        handle = super().open(*args, **kwargs)
        self.handles.append(handle)
        return handle


def test_teardown_releases_a_socket_blocked_in_recv():
    first_frame = threading.Event()
    rec = Recorder()
    callbacks = rec.callbacks()
    on_frame = callbacks.on_frame

    def record_and_signal(frame):
        on_frame(frame)
        first_frame.set()

    callbacks = StreamCallbacks(on_frame=record_and_signal, on_end=callbacks.on_end, on_error=callbacks.on_error)

    with StallingServer(encode_chunk("Hel").encode("utf-8")) as server, httpx.Client(trust_env=False) as client:
        handle = _live_reader(server.base_url, client).open("x", callbacks)
        assert first_frame.wait(5)  # nosec B101

        handle.teardown("cancelled")
        handle.teardown("cancelled")  # idempotent
        assert handle.join(2) is True  # nosec B101
        assert not server.release.is_set()  # nosec B101

    assert rec.kinds == ["frame"] and rec.text == "Hel"  # nosec B101
    assert handle.token.cancelled  # nosec B101


def test_session_cancel_frees_the_reader_thread_on_a_stalled_server():
    with StallingServer(encode_chunk("Hel").encode("utf-8")) as server, httpx.Client(trust_env=False) as client:
        reader = _live_reader(server.base_url, client, reader_cls=_HandleKeepingReader)
        controller = SessionController(reader)
        got_content = threading.Event()

        def watch(snapshot):
            active = snapshot.active_message
            if active is not None and active.content:
                got_content.set()

        controller.subscribe(watch)

        assert controller.submit("long story") is True  # nosec B101
        assert got_content.wait(5)  # nosec B101
        assert controller.cancel() is True  # nosec B101
        assert reader.handles[0].join(2) is True  # nosec B101

    last = controller.messages[-1]
    assert last.content == "Hel" and last.status is MessageStatus.COMPLETED  # nosec B101
    assert not controller.generating and controller.last_error is None  # nosec B101
