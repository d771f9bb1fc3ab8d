"""XP leaderboard read straight from user_levels.

Ordering is total_xp descending with user_id as the tie-breaker, so the rank
reported for a single user always matches that user's position in the list.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.db.models import UserLevel

DEFAULT_LIMIT = 20


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    user_id: str
    current_level: int
    total_xp: int


async def get_leaderboard(db: AsyncSession, limit: int = DEFAULT_LIMIT) -> list[LeaderboardRow]:
    """Top ``limit`` users by lifetime XP."""
    result = await db.execute(
        select(UserLevel.user_id, UserLevel.current_level, UserLevel.total_xp)
        .order_by(UserLevel.total_xp.desc(), UserLevel.user_id)
        .limit(limit)
    )
    return [
        LeaderboardRow(rank=i, user_id=row.user_id, current_level=row.current_level, total_xp=row.total_xp)
        for i, row in enumerate(result, start=1)
    ]


async def get_user_rank(db: AsyncSession, user_id: str) -> int | None:
    """1-based rank of ``user_id``, or None if the user has no XP yet."""
    mine = await db.execute(select(UserLevel.total_xp).where(UserLevel.user_id == user_id))
    total_xp = mine.scalar_one_or_none()
    if total_xp is None:
        return None

    ahead = await db.execute(
        select(func.count())
        .select_from(UserLevel)
        .where(
            or_(
                UserLevel.total_xp > total_xp,
                and_(UserLevel.total_xp == total_xp, UserLevel.user_id < user_id),
            )
        )
    )
    return ahead.scalar_one() + 1
