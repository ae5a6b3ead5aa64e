"""CLI parser construction for the chatstream client.

Only argument shapes live here; handlers are in ``cli_actions`` and
``cli_shell``.
"""

from __future__ import annotations

import argparse


def add_connection_flags(parser: argparse.ArgumentParser) -> None:
    """Attach endpoint and logging flags shared by every subcommand."""
    parser.add_argument("--base-url", default=None, help="Backend base URL (default from config/env)")
    parser.add_argument("--chat-path", default=None, help="Streaming endpoint path (default /api/chat)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Console log level (DEBUG, INFO, WARNING, ERROR); logs go to stderr",
    )
    parser.add_argument("--log-file", default=None, help="Also write JSON logs to this file")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI parser with ``ask`` and ``shell`` subcommands."""
    p = argparse.ArgumentParser(prog="chatstream", description="Streaming chat client")
    sub = p.add_subparsers(dest="cmd")

    p_ask = sub.add_parser("ask", help="Send one prompt, print the streamed reply and exit")
    p_ask.add_argument("--prompt", required=True)
    p_ask.add_argument("--json", action="store_true", help="Print the final message as JSON instead of live text")
    p_ask.add_argument("--timeout", type=float, default=None, help="Cancel after this many seconds")
    add_connection_flags(p_ask)

    p_shell = sub.add_parser("shell", help="Interactive chat (default)")
    p_shell.add_argument("--no-color", dest="color", action="store_false")
    add_connection_flags(p_shell)

    return p


__all__ = ["build_parser", "add_connection_flags"]
