"""Per-stream metrics, logged once when a stream ends."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class StreamMetrics:
    """Collected metrics for a single stream.

    Fields:
      emitted: number of content deltas delivered
      chars: total characters delivered
      time_to_first_token_ms: delay between open and the first non-empty delta
      total_duration_ms: delay between open and the end of the stream
    """

    emitted: int = 0
    chars: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    def record_delta(self, text: str, elapsed_ms: float) -> None:
        self.emitted += 1
        self.chars += len(text)
        if text and self.time_to_first_token_ms is None:
            self.time_to_first_token_ms = elapsed_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emitted_count": self.emitted,
            "chars": self.chars,
            "time_to_first_token_ms": self.time_to_first_token_ms,
            "total_duration_ms": self.total_duration_ms,
        }


__all__ = ["StreamMetrics"]
