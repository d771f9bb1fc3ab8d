"""Challenge period boundaries in UTC.

Daily periods start at 00:00 UTC; weekly periods are ISO weeks starting on
Monday 00:00 UTC. A period is identified by the date it starts on.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from enum import Enum


class ChallengeCadence(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = dt.date() if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def period_start(cadence: ChallengeCadence, now: datetime | None = None) -> date:
    """First day of the period containing ``now``."""
    if now is None:
        now = datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date()
    if cadence is ChallengeCadence.WEEKLY:
        return get_monday(today)
    return today


def next_reset(cadence: ChallengeCadence, now: datetime | None = None) -> datetime:
    """UTC instant at which the current period ends."""
    start = period_start(cadence, now)
    length = timedelta(weeks=1) if cadence is ChallengeCadence.WEEKLY else timedelta(days=1)
    return datetime.combine(start + length, datetime.min.time(), tzinfo=timezone.utc)


def days_until_reset(now: datetime | None = None) -> int:
    """Whole days left before the weekly challenges reset (1 on Sunday)."""
    if now is None:
        now = datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date()
    return 7 - today.weekday()
