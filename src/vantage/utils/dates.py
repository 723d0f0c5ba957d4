"""Date and rounding helpers shared by the analytics."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) as an aware UTC datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def age_days(then: datetime, now: datetime) -> int:
    """Whole days elapsed from ``then`` to ``now``, never negative."""
    return max(0, math.floor((now - then).total_seconds() / SECONDS_PER_DAY))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(part: float, total: float) -> int:
    """Rounded percentage of ``part`` over ``total``; 0 for an empty total."""
    if not total:
        return 0
    return round_half_up(100 * part / total)
