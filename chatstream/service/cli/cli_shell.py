"""Interactive terminal chat.

Purpose
-------
A line-oriented REPL over one :class:`SessionController`. Plain lines are
submitted as requests and the reply is printed live as it streams.

Commands
--------
- ``/stop``: cancel the active generation (partial text is kept)
- ``/retry``: resend the request whose reply failed
- ``/history``: print the transcript
- ``/error``: show the last error, if any
- ``/help``: show this list
- ``/quit`` (or ``/exit``, EOF): leave

Ctrl-C while a reply is streaming cancels it; at the prompt it is ignored.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Dict, Optional, TextIO

from ...base.logging import get_logger, log_event
from ...session import SessionController
from .cli_actions import build_controller, wait_for_generation
from .cli_render import TranscriptPrinter, format_history
from .cli_utils import suppress_console_logs

PROMPT = "> "


def _readline(prompt: str) -> str:
    """Read a single line from stdin; return ``/quit`` on EOF."""
    try:
        return input(prompt)
    except EOFError:
        return "/quit"


class ChatShell:
    """Holds the interactive state and executes commands.

    Parameters
    ----------
    controller: SessionController
        Session driven by this shell.
    out: Optional[TextIO]
        Output stream (defaults to ``sys.stdout``).
    color: bool
        Colorize error lines.
    block: bool
        Wait for each reply to finish before returning from :meth:`dispatch`.
    """

    def __init__(
        self,
        controller: SessionController,
        *,
        out: Optional[TextIO] = None,
        color: bool = True,
        block: bool = True,
    ) -> None:
        self.controller = controller
        self.out = out or sys.stdout
        self.block = block
        self.printer = TranscriptPrinter(self.out, color=color)
        self._logger = get_logger("chatstream.cli")
        self._unsubscribe = controller.subscribe(self.printer)
        self._commands: Dict[str, Callable[[], None]] = {
            "/stop": self.stop,
            "/retry": self.retry,
            "/history": self.history,
            "/error": self.show_error,
            "/help": self.help,
        }

    def _say(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()

    def dispatch(self, raw_input: str) -> bool:
        """Execute one input line. Returns ``False`` when the shell should exit."""
        line = raw_input.strip()
        if not line:
            return True
        if line in {"/quit", "/exit"}:
            return False
        if not line.startswith("/"):
            self.ask(line)
            return True
        name = line.split()[0]
        command = self._commands.get(name)
        log_event(self._logger, "cli.shell.command", level=logging.DEBUG, command=name, known=command is not None)
        if command is None:
            self._say(f"unknown command: {name} (try /help)")
        else:
            command()
        return True

    def ask(self, text: str) -> None:
        if not self.controller.submit(text):
            self._say("busy: a reply is still streaming (use /stop)")
            return
        self._wait()

    def stop(self) -> None:
        if not self.controller.cancel():
            self._say("nothing to stop")

    def retry(self) -> None:
        if not self.controller.retry_last():
            self._say("nothing to retry")
            return
        self._wait()

    def history(self) -> None:
        self._say(format_history(self.controller.snapshot()))

    def show_error(self) -> None:
        error = self.controller.last_error
        if error is None:
            self._say("no error")
            return
        suffix = f" (code {error.status})" if error.status is not None else ""
        self._say(self.printer.format_error(f"{error.message}{suffix} [{error.code.value}]"))

    def help(self) -> None:
        self._say("commands: /stop /retry /history /error /help /quit")

    def _wait(self) -> None:
        if self.block and not wait_for_generation(self.controller):
            self._say("(stopped)")

    def close(self) -> None:
        self._unsubscribe()
        self.controller.close()

    def loop(self, read: Callable[[str], str] = _readline) -> None:
        """Read and dispatch lines until ``/quit`` or EOF."""
        self.help()
        while True:
            try:
                line = read(PROMPT)
            except KeyboardInterrupt:
                self._say("")
                continue
            with suppress_console_logs():
                if not self.dispatch(line):
                    return


def handle_shell(args: argparse.Namespace) -> int:
    """Run the interactive shell until the user quits."""
    shell = ChatShell(build_controller(args), color=getattr(args, "color", True))
    try:
        shell.loop()
    finally:
        shell.close()
    return 0


__all__ = ["ChatShell", "handle_shell"]
