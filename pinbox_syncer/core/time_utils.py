from __future__ import annotations

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis() -> int:
    return int(time.time() * 1000)
