"""Wall-clock helpers. Durable records carry epoch milliseconds."""

from __future__ import annotations

import time


def now_ms() -> int:
    """Return the current time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000
