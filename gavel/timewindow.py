"""
Countdown and urgency for a fixed auction end time.

Tiers, on the time left:
  • NORMAL   ≥ 2 hours
  • WARNING  ≥ 10 minutes
  • URGENT   < 10 minutes
  • ENDED    nothing left
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

ENDED_LABEL = "Auction Ended"
DEFAULT_WINDOW = timedelta(hours=24)

_WARNING_BELOW = timedelta(hours=2)
_URGENT_BELOW = timedelta(minutes=10)


class Urgency(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    URGENT = "urgent"
    ENDED = "ended"


@dataclass(frozen=True)
class TimeWindow:
    remaining: timedelta
    remaining_text: str
    urgency: Urgency
    percent_remaining: float


def as_utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def format_remaining(remaining: timedelta) -> str:
    """Compact label, largest units first, always floored."""
    secs = int(remaining.total_seconds())
    days, secs = divmod(secs, 86400)
    hours, secs = divmod(secs, 3600)
    minutes, seconds = divmod(secs, 60)
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    return f"{minutes}m {seconds}s"


def classify(remaining: timedelta) -> Urgency:
    if remaining <= timedelta(0):
        return Urgency.ENDED
    if remaining >= _WARNING_BELOW:
        return Urgency.NORMAL
    if remaining >= _URGENT_BELOW:
        return Urgency.WARNING
    return Urgency.URGENT


def evaluate(
    end_time: datetime, now: datetime, full_window: timedelta = DEFAULT_WINDOW
) -> TimeWindow:
    end_time, now = as_utc(end_time), as_utc(now)
    if now >= end_time:
        return TimeWindow(timedelta(0), ENDED_LABEL, Urgency.ENDED, 0.0)

    remaining = end_time - now
    percent = remaining / full_window * 100 if full_window > timedelta(0) else 100.0
    return TimeWindow(
        remaining=remaining,
        remaining_text=format_remaining(remaining),
        urgency=classify(remaining),
        percent_remaining=max(0.0, min(100.0, percent)),
    )
