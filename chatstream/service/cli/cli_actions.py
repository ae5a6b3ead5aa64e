"""Subcommand handlers shared by the one-shot and interactive modes."""

from __future__ import annotations

import argparse
import json
import sys
import time
from typing import Optional, TextIO

from ...base.logging import configure_logger, get_logger, log_event
from ...base.models import MessageStatus
from ...base.streaming import HttpxSseTransport, StreamReader
from ...config import ClientSettings
from ...session import SessionController, SessionState
from .cli_render import TranscriptPrinter
from .cli_utils import suppress_console_logs

POLL_INTERVAL_SECONDS = 0.1


def apply_logging(args: argparse.Namespace) -> None:
    """Apply ``--log-level`` / ``--log-file`` to the shared logger."""
    configure_logger(level=getattr(args, "log_level", None), file_path=getattr(args, "log_file", None))


def build_controller(args: argparse.Namespace) -> SessionController:
    """Create a controller talking to the endpoint selected by ``args``."""
    settings = ClientSettings.from_config(
        {"base_url": getattr(args, "base_url", None), "chat_path": getattr(args, "chat_path", None)}
    )
    return SessionController(StreamReader(HttpxSseTransport(settings)))


def wait_for_generation(controller: SessionController, timeout: Optional[float] = None) -> bool:
    """Block until the active generation ends; Ctrl-C or ``timeout`` cancels it.

    Returns ``True`` when the generation ended on its own.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    try:
        while not controller.wait_idle(POLL_INTERVAL_SECONDS):
            if deadline is not None and time.monotonic() >= deadline:
                controller.cancel()
                return False
    except KeyboardInterrupt:
        controller.cancel()
        return False
    return True


def handle_ask(
    args: argparse.Namespace,
    *,
    controller: Optional[SessionController] = None,
    out: Optional[TextIO] = None,
) -> int:
    """Run one prompt to completion.

    Exit code is 0 when the reply completed (including a timeout/Ctrl-C
    stop, which keeps the partial text) and 1 when it failed or the prompt
    was rejected.
    """
    out = out or sys.stdout
    controller = controller or build_controller(args)
    printer = TranscriptPrinter(out)
    unsubscribe = None if args.json else controller.subscribe(printer)
    try:
        with suppress_console_logs(enabled=not args.json):
            if not controller.submit(args.prompt):
                out.write("error: empty prompt\n")
                return 1
            wait_for_generation(controller, args.timeout)
        snapshot = controller.snapshot()
    finally:
        if unsubscribe is not None:
            unsubscribe()
        controller.close()

    reply = snapshot.messages[-1]
    if args.json:
        payload = {
            "content": reply.content,
            "status": reply.status.value,
            "error": snapshot.last_error.to_dict() if snapshot.last_error else None,
        }
        out.write(json.dumps(payload, ensure_ascii=False) + "\n")
    failed = snapshot.state is SessionState.FAILED or reply.status is MessageStatus.FAILED
    exit_code = 1 if failed else 0
    log_event(
        get_logger("chatstream.cli"), "cli.ask.done",
        status=reply.status.value, chars=len(reply.content), exit_code=exit_code,
        error_code=snapshot.last_error.code.value if snapshot.last_error else None,
    )
    return exit_code


__all__ = ["apply_logging", "build_controller", "wait_for_generation", "handle_ask"]
