# -*- coding: utf-8 -*-
"""Utility helpers shared by the terminal client.

- ``suppress_console_logs()``: Context manager to temporarily detach console
  handlers of the ``chatstream`` logger tree while preserving file handlers,
  so structured logs do not interleave with streamed text.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Iterator, List, Tuple

_FILE_HANDLER_ATTR = "_chatstream_file_handler"


def _chatstream_loggers() -> List[logging.Logger]:
    loggers = [logging.getLogger("chatstream")]
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and name.startswith("chatstream."):
            loggers.append(logger)
    return loggers


@contextlib.contextmanager
def suppress_console_logs(enabled: bool = True) -> Iterator[None]:
    """Temporarily detach console handlers from the ``chatstream`` loggers.

    Managed file handlers (tagged ``_chatstream_file_handler``) are left in
    place. Original handlers are restored on exit.
    """
    if not enabled:
        yield
        return
    detached: List[Tuple[logging.Logger, logging.Handler]] = []
    # keeps logging.lastResort from printing while the console handlers are away
    placeholder = logging.NullHandler()
    base = logging.getLogger("chatstream")
    try:
        for lg in _chatstream_loggers():
            for handler in list(lg.handlers):
                if getattr(handler, _FILE_HANDLER_ATTR, False):
                    continue
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    with contextlib.suppress(Exception):
                        handler.flush()
                    detached.append((lg, handler))
                    lg.removeHandler(handler)
        base.addHandler(placeholder)
        yield
    finally:
        base.removeHandler(placeholder)
        for lg, handler in detached:
            lg.addHandler(handler)


__all__ = ["suppress_console_logs"]
