"""Achievement evaluator: unlocks catalog achievements from a stats snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.database import upsert
from playquest.db.models import (
    Achievement,
    TaskSubmission,
    UserAchievement,
    UserGameProgress,
)
from playquest.gamification.streak_service import get_streak
from playquest.gamification.xp_service import add_xp, get_level_state
from playquest.ledger.service import credit, get_wallet
from playquest.redis_client import publish_event

logger = logging.getLogger(__name__)


class RequirementType(str, Enum):
    LEVEL_REACHED = "level_reached"
    XP_EARNED = "xp_earned"
    STREAK_DAYS = "streak_days"
    LONGEST_STREAK = "longest_streak"
    PLAYCOINS_EARNED = "playcoins_earned"
    GAMES_COMPLETED = "games_completed"
    TASKS_COMPLETED = "tasks_completed"

    @classmethod
    def parse(cls, raw: str) -> RequirementType | None:
        """Known kind or None (unrecognized kinds are skipped, never matched)."""
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class StatsSnapshot:
    level: int = 1
    total_xp: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_earned: int = 0
    games_completed: int = 0
    tasks_completed: int = 0

    def value_for(self, requirement: RequirementType) -> int:
        return {
            RequirementType.LEVEL_REACHED: self.level,
            RequirementType.XP_EARNED: self.total_xp,
            RequirementType.STREAK_DAYS: self.current_streak,
            RequirementType.LONGEST_STREAK: self.longest_streak,
            RequirementType.PLAYCOINS_EARNED: self.total_earned,
            RequirementType.GAMES_COMPLETED: self.games_completed,
            RequirementType.TASKS_COMPLETED: self.tasks_completed,
        }[requirement]


@dataclass(frozen=True)
class UnlockedAchievement:
    id: int
    slug: str
    name: str
    xp_reward: int
    playcoins_reward: int


@dataclass
class EvaluationResult:
    newly_unlocked: list[UnlockedAchievement] = field(default_factory=list)
    total_unlocked: int = 0


async def build_stats_snapshot(db: AsyncSession, user_id: str) -> StatsSnapshot:
    """Read the user's cross-component statistics fresh from the store."""
    level = await get_level_state(db, user_id)
    streak = await get_streak(db, user_id)
    wallet = await get_wallet(db, user_id)

    games_result = await db.execute(
        select(func.count())
        .select_from(UserGameProgress)
        .where(
            UserGameProgress.user_id == user_id,
            UserGameProgress.is_completed.is_(True),
        )
    )
    tasks_result = await db.execute(
        select(func.count())
        .select_from(TaskSubmission)
        .where(
            TaskSubmission.user_id == user_id,
            TaskSubmission.status == "approved",
        )
    )

    return StatsSnapshot(
        level=level.current_level if level else 1,
        total_xp=level.total_xp if level else 0,
        current_streak=streak.current_streak if streak else 0,
        longest_streak=streak.longest_streak if streak else 0,
        total_earned=wallet.total_earned if wallet else 0,
        games_completed=games_result.scalar_one(),
        tasks_completed=tasks_result.scalar_one(),
    )


async def get_unlocked_ids(db: AsyncSession, user_id: str) -> set[int]:
    result = await db.execute(
        select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    )
    return set(result.scalars().all())


async def _try_unlock(
    db: AsyncSession,
    user_id: str,
    achievement_id: int,
    progress: int,
    now: datetime,
) -> bool:
    """Insert the unlock row unless one exists. True only for the inserting caller."""
    table = UserAchievement.__table__
    stmt = (
        upsert(db, table)
        .values(
            user_id=user_id,
            achievement_id=achievement_id,
            progress=progress,
            unlocked_at=now,
        )
        .on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
        .returning(table.c.id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def _cascade_rewards(
    db: AsyncSession,
    redis: object,
    user_id: str,
    achievement: UnlockedAchievement,
) -> None:
    """Pay out an unlock's rewards. Each step commits or rolls back on its own."""
    key = f"achievement:{achievement.id}:{user_id}"

    if achievement.playcoins_reward > 0:
        try:
            await credit(
                db,
                user_id,
                achievement.playcoins_reward,
                source_type="achievement",
                source_id=str(achievement.id),
                description=f"Achievement: {achievement.name}",
                idempotency_key=key,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error(
                "PlayCoins payout failed for achievement %s (user %s)",
                achievement.slug, user_id, exc_info=True,
            )

    if achievement.xp_reward > 0:
        try:
            await add_xp(
                db,
                redis,
                user_id,
                achievement.xp_reward,
                source=f"achievement:{achievement.name}",
                source_id=str(achievement.id),
                idempotency_key=key,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error(
                "XP payout failed for achievement %s (user %s)",
                achievement.slug, user_id, exc_info=True,
            )


async def evaluate_achievements(
    db: AsyncSession,
    redis: object,
    user_id: str,
    trigger_type: str | None = None,
) -> EvaluationResult:
    """Unlock every active achievement whose threshold the user now meets.

    Unlocks are committed before rewards are paid, so an unlock stays final
    even if a payout fails afterwards.
    """
    logger.info("Checking achievements for %s (trigger=%s)", user_id, trigger_type)

    result = await db.execute(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(Achievement.sort_order, Achievement.id)
    )
    achievements = result.scalars().all()
    unlocked_ids = await get_unlocked_ids(db, user_id)
    stats = await build_stats_snapshot(db, user_id)

    now = datetime.now(timezone.utc)
    newly_unlocked: list[UnlockedAchievement] = []

    for achievement in achievements:
        if achievement.id in unlocked_ids:
            continue

        requirement = RequirementType.parse(achievement.requirement_type)
        if requirement is None:
            logger.debug(
                "Skipping achievement %s with unknown requirement %s",
                achievement.slug, achievement.requirement_type,
            )
            continue

        progress = stats.value_for(requirement)
        if progress < achievement.requirement_value:
            continue

        if await _try_unlock(db, user_id, achievement.id, progress, now):
            newly_unlocked.append(UnlockedAchievement(
                id=achievement.id,
                slug=achievement.slug,
                name=achievement.name,
                xp_reward=achievement.xp_reward,
                playcoins_reward=achievement.playcoins_reward,
            ))
            logger.info("Achievement unlocked: %s for %s", achievement.slug, user_id)

    await db.commit()

    for unlocked in newly_unlocked:
        await _cascade_rewards(db, redis, user_id, unlocked)
        await publish_event(redis, "pubsub:achievement_unlocked", {
            "user_id": user_id,
            "achievement_slug": unlocked.slug,
            "achievement_name": unlocked.name,
            "xp_reward": unlocked.xp_reward,
            "playcoins_reward": unlocked.playcoins_reward,
        })

    logger.info(
        "Checked %d achievements for %s, unlocked %d",
        len(achievements), user_id, len(newly_unlocked),
    )
    return EvaluationResult(
        newly_unlocked=newly_unlocked,
        total_unlocked=len(unlocked_ids) + len(newly_unlocked),
    )


async def list_user_achievements(
    db: AsyncSession,
    user_id: str,
) -> list[tuple[Achievement, UserAchievement | None]]:
    """Active catalog paired with the user's unlock row (or None)."""
    catalog = await db.execute(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(Achievement.sort_order, Achievement.id)
    )
    unlocks = await db.execute(
        select(UserAchievement).where(UserAchievement.user_id == user_id)
    )
    by_id = {u.achievement_id: u for u in unlocks.scalars()}
    return [(a, by_id.get(a.id)) for a in catalog.scalars()]
