"""Structured logging context object.

:class:`LogContext` carries the fields shared by every event of one
generation (session, epoch, message id) so call sites do not repeat them.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for session and stream logging events."""

    session_id: Optional[str] = None
    epoch: Optional[int] = None
    message_id: Optional[str] = None
    url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}


__all__ = ["LogContext"]
