"""
Time source helpers.

All engine timestamps are timezone-aware UTC. Services accept a `Clock`
(zero-argument callable returning "now") so tests can move time forward
without sleeping.

SQLite hands `DateTime(timezone=True)` columns back as naive values; every
timestamp read from a row goes through `ensure_utc` before arithmetic.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
