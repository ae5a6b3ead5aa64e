"""
Normalized stream error codes (taxonomy).

Values are lowercase snake_case and are considered a stable public contract
for logging.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    PROTOCOL = "protocol"
    DECODE = "decode"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


__all__ = ["ErrorCode"]
