"""
Time window filtering.

The lookback window bounds trend series only. Utilization, cancellation
patterns and the summary block are computed over the full (scope-filtered)
collections so their denominators cover all time.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

from .config import DEFAULT_LOOKBACK_DAYS, MAX_LOOKBACK_DAYS, MIN_LOOKBACK_DAYS
from .snapshot import Collections

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def clamp_days(raw: Any) -> int:
    """Parse a lookback parameter: default 30 when unparsable, clamped to [1, 365]."""
    match = _LEADING_INT.match(str(raw)) if raw is not None else None
    days = int(match.group(0)) if match else DEFAULT_LOOKBACK_DAYS
    return min(max(days, MIN_LOOKBACK_DAYS), MAX_LOOKBACK_DAYS)


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive calendar-date range ending today."""
    start: date
    end: date
    days: int

    @classmethod
    def ending_today(cls, days: int, today: Optional[date] = None) -> "TimeWindow":
        today = today or date.today()
        return cls(start=today - timedelta(days=days), end=today, days=days)

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.start <= day <= self.end

    def as_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat(), "days": self.days}


@dataclass(frozen=True)
class WindowedViews:
    """Scope-filtered collections, in full and restricted to the window."""
    all: Collections
    windowed: Collections
    window: TimeWindow


def apply_window(collections: Collections, window: TimeWindow) -> WindowedViews:
    """Split collections into the all-time and in-window views.

    Records with no usable date drop out of the windowed view only.
    """
    windowed = Collections(
        sessions=[s for s in collections.sessions if window.contains(s.date)],
        enrollments=[e for e in collections.enrollments if window.contains(e.created_date)],
        attendance=[a for a in collections.attendance if window.contains(a.date)],
        payments=[p for p in collections.payments if window.contains(p.paid_date)],
    )
    return WindowedViews(all=collections, windowed=windowed, window=window)
