"""Unit coverage for structured logging utilities and helpers."""

from __future__ import annotations

import io
import json
import logging

from chatstream.base.logging import (
    REQUIRED_NORMALIZED_KEYS,
    LogContext,
    configure_logger,
    get_logger,
    log_event,
    normalized_log_event,
)
from chatstream.base.log_support import JsonFormatter


def test_get_logger_env_overrides_level(monkeypatch, capsys):
    monkeypatch.setenv("CHATSTREAM_LOG_LEVEL", "ERROR")
    logger = get_logger(name="chatstream.test", json_mode=True, level=logging.DEBUG)
    # INFO log shouldn't appear
    logger.info("hello")
    out = capsys.readouterr().err
    assert out == ""  # nosec B101 - asserts are appropriate in unit tests
    # ERROR should be emitted as JSON
    logger.error("fail")
    out = capsys.readouterr().err
    data = json.loads(out.strip())
    assert data["level"] == "ERROR"  # nosec B101 - asserts are appropriate in unit tests
    assert data["logger"] == "chatstream.test"  # nosec B101


def test_normalized_log_event_includes_required_keys(capsys):
    logger = get_logger(name="chatstream.test2", json_mode=True)
    ctx = LogContext(session_id="s1", epoch=3, message_id="assistant-1")
    normalized_log_event(
        logger,
        "session.error",
        ctx,
        phase="finalize",
        error_code="protocol",
        emitted=True,
        status=500,
    )
    data = json.loads(capsys.readouterr().err.strip())
    for key in REQUIRED_NORMALIZED_KEYS:
        assert key in data  # nosec B101
    assert data["event"] == "session.error"  # nosec B101
    assert data["session_id"] == "s1" and data["epoch"] == 3  # nosec B101
    assert data["status"] == 500 and data["attempt"] is None  # nosec B101


def test_extra_fields_never_override_normalized_values(capsys):
    logger = get_logger(name="chatstream.test3")
    normalized_log_event(logger, "x", phase="start", attempt=2, extra_ignored=None, **{"emitted": False})
    data = json.loads(capsys.readouterr().err.strip())
    assert data["attempt"] == 2 and data["emitted"] is False  # nosec B101
    assert "extra_ignored" not in data  # nosec B101
    assert "error_code" not in data  # nosec B101


def test_log_event_drops_none_unless_asked(capsys):
    logger = get_logger(name="chatstream.test4")
    log_event(logger, "a", present=1, missing=None)
    first = json.loads(capsys.readouterr().err.strip())
    log_event(logger, "b", keep_none=True, missing=None)
    second = json.loads(capsys.readouterr().err.strip())
    assert first["present"] == 1 and "missing" not in first  # nosec B101
    assert "missing" in second and second["missing"] is None  # nosec B101


def test_json_formatter_hoists_json_message_and_drops_cli_msg():
    fmt = JsonFormatter()
    rec = logging.LogRecord("chatstream.cli", logging.INFO, __file__, 1, json.dumps({"event": "cli.ask", "k": 1}), None, None)
    data = json.loads(fmt.format(rec))
    assert data["event"] == "cli.ask" and data["k"] == 1  # nosec B101
    assert "msg" not in data  # nosec B101
    plain = logging.LogRecord("chatstream", logging.INFO, __file__, 1, "plain text", None, None)
    assert json.loads(fmt.format(plain))["msg"] == "plain text"  # nosec B101


def test_configure_logger_attaches_and_removes_file_handler(tmp_path):
    log_file = tmp_path / "logs" / "chatstream.log"
    logger = configure_logger(level="INFO", file_path=str(log_file))
    try:
        log_event(logger, "file.check", value=7)
        for h in logger.handlers:
            h.flush()
        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["value"] == 7  # nosec B101
        # same path is reused rather than duplicated
        configure_logger(file_path=str(log_file))
        managed = [h for h in logger.handlers if getattr(h, "_chatstream_file_handler", False)]
        assert len(managed) == 1  # nosec B101
    finally:
        configure_logger(file_path=None)
    assert not [h for h in logger.handlers if getattr(h, "_chatstream_file_handler", False)]  # nosec B101


def test_child_loggers_propagate_without_own_handlers():
    logger = get_logger("chatstream.child")
    assert logger.propagate is True and logger.handlers == []  # nosec B101
    assert get_logger().propagate is False  # nosec B101


def test_log_context_merges_extra_and_drops_none():
    ctx = LogContext(session_id="s", extra={"phase_hint": "x", "none": None})
    assert ctx.to_dict() == {"session_id": "s", "phase_hint": "x"}  # nosec B101


def test_log_event_output_is_plain_json():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = get_logger("chatstream.plain")
    logger.addHandler(handler)
    try:
        log_event(logger, "plain.event")
    finally:
        logger.removeHandler(handler)
    assert json.loads(stream.getvalue().strip()) == {"event": "plain.event"}  # nosec B101
