"""Daily learning streaks.

Breaks are detected lazily on the next touch by comparing UTC calendar
dates; there is no background sweep, so an untouched streak keeps showing
its last value until the user's next activity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.database import upsert
from playquest.db.models import LearningStreak
from playquest.redis_client import publish_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakResult:
    current_streak: int
    longest_streak: int
    streak_increased: bool
    streak_maintained: bool


def utc_today(now: datetime | None = None) -> date:
    """Current calendar day at the UTC day boundary."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date()


async def get_streak(db: AsyncSession, user_id: str) -> LearningStreak | None:
    result = await db.execute(
        select(LearningStreak)
        .where(LearningStreak.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def touch_streak(
    db: AsyncSession,
    redis: object,
    user_id: str,
    today: date | None = None,
) -> StreakResult:
    """Record a qualifying activity for ``today`` (UTC) and advance the streak."""
    if today is None:
        today = utc_today()
    yesterday = today - timedelta(days=1)
    now = datetime.now(timezone.utc)

    # First touch: only the request whose insert lands starts the streak
    table = LearningStreak.__table__
    inserted = await db.execute(
        upsert(db, table)
        .values(
            user_id=user_id,
            current_streak=1,
            longest_streak=1,
            last_activity_date=today,
            updated_at=now,
        )
        .on_conflict_do_nothing(index_elements=["user_id"])
        .returning(table.c.user_id)
    )
    if inserted.scalar_one_or_none() is not None:
        logger.info("Streak started for %s", user_id)
        return StreakResult(
            current_streak=1,
            longest_streak=1,
            streak_increased=True,
            streak_maintained=False,
        )

    result = await db.execute(
        select(LearningStreak)
        .where(LearningStreak.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    streak = result.scalar_one()

    if streak.last_activity_date == today:
        return StreakResult(
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            streak_increased=False,
            streak_maintained=True,
        )

    increased = streak.last_activity_date == yesterday
    if increased:
        streak.current_streak += 1
        streak.longest_streak = max(streak.longest_streak, streak.current_streak)
    else:
        # Streak broken
        if streak.current_streak > 1:
            await publish_event(redis, "pubsub:streak_update", {
                "user_id": user_id,
                "event": "streak_broken",
                "streak_length": streak.current_streak,
            })
        streak.current_streak = 1
    streak.last_activity_date = today
    streak.updated_at = now
    await db.flush()

    logger.info(
        "Streak updated for %s: %d days (longest: %d)",
        user_id, streak.current_streak, streak.longest_streak,
    )
    return StreakResult(
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        streak_increased=increased,
        streak_maintained=False,
    )
