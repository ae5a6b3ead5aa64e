"""chatstream terminal client (package entrypoint).

Wires argument parsing to the ``ask`` and ``shell`` handlers. No streaming
logic lives here; everything goes through :class:`SessionController`.

Public API re-exports:
- ``main``: CLI entrypoint callable
- ``build_parser``: argument parser factory
"""

from __future__ import annotations

import sys
from typing import Optional

from .cli_actions import apply_logging, handle_ask
from .cli_parser import build_parser
from .cli_shell import handle_shell


def main(argv: Optional[list[str]] = None) -> int:
	"""CLI entrypoint.

	Parameters
	----------
	argv: Optional[list[str]]
		Argument vector; when ``None`` uses ``sys.argv[1:]``.

	Returns
	-------
	int
		Process exit code (0 success, 1 when the generation failed).
	"""
	p = build_parser()
	# Inject default subcommand "shell" when omitted.
	argv_list = list(sys.argv[1:] if argv is None else argv)
	if not argv_list or argv_list[0] not in {"ask", "shell", "-h", "--help"}:
		argv_list = ["shell"] + argv_list
	args = p.parse_args(argv_list)
	apply_logging(args)
	return handle_ask(args) if args.cmd == "ask" else handle_shell(args)


__all__ = ["main", "build_parser"]


if __name__ == "__main__":  # pragma: no cover
	raise SystemExit(main())
