"""Game completion handler.

Records an attempt, then on the first completion of a game pays its rewards,
advances the streak and evaluates achievements. The progress row is committed
before any of those follow-ups run; a failing follow-up is logged and does not
undo the completion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.config import get_settings
from playquest.database import upsert
from playquest.db.models import Game, UserGameProgress
from playquest.errors import GameNotFound
from playquest.gamification.achievement_service import evaluate_achievements
from playquest.gamification.streak_service import touch_streak
from playquest.gamification.xp_service import add_xp
from playquest.ledger.service import credit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameCompletionResult:
    is_completed: bool
    is_first_completion: bool
    is_new_high_score: bool
    completion_percentage: int
    playcoins_awarded: int
    xp_awarded: int


def completion_percentage(score: int, max_score: int) -> int:
    """round(100 * score / max_score), or 100 when there is no maximum."""
    if max_score <= 0:
        return 100
    # Half-up: 72.5 reports 73
    return (200 * score + max_score) // (2 * max_score)


async def get_game(db: AsyncSession, game_id: int) -> Game | None:
    result = await db.execute(select(Game).where(Game.id == game_id))
    return result.scalar_one_or_none()


async def list_games(db: AsyncSession, subject: str | None = None) -> list[Game]:
    stmt = select(Game).where(Game.is_active.is_(True))
    if subject:
        stmt = stmt.where(Game.subject == subject)
    result = await db.execute(stmt.order_by(Game.subject, Game.difficulty_level, Game.id))
    return list(result.scalars().all())


async def get_game_progress(db: AsyncSession, user_id: str, game_id: int | None = None) -> list[UserGameProgress]:
    stmt = select(UserGameProgress).where(UserGameProgress.user_id == user_id)
    if game_id is not None:
        stmt = stmt.where(UserGameProgress.game_id == game_id)
    result = await db.execute(
        stmt.order_by(UserGameProgress.game_id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def complete_game(
    db: AsyncSession,
    redis: object,
    user_id: str,
    game_id: int,
    score: int,
    max_score: int,
    time_spent_seconds: int,
    game_state: dict[str, Any] | None = None,
) -> GameCompletionResult:
    """Record a finished game attempt and grant first-completion rewards."""
    game = await get_game(db, game_id)
    if game is None:
        raise GameNotFound

    game_name = game.name
    playcoins_reward = game.playcoins_reward
    xp_reward = game.xp_reward

    percentage = completion_percentage(score, max_score)
    completed_now = percentage >= get_settings().game_completion_threshold
    now = datetime.now(timezone.utc)

    # Insert-if-missing before locking; a missing row takes no lock
    table = UserGameProgress.__table__
    inserted = await db.execute(
        upsert(db, table)
        .values(
            user_id=user_id,
            game_id=game_id,
            score=0,
            max_score=max_score,
            completion_percentage=0,
            is_completed=False,
            time_spent_seconds=0,
            attempts=0,
            game_state={},
        )
        .on_conflict_do_nothing(index_elements=["user_id", "game_id"])
        .returning(table.c.id)
    )
    created = inserted.scalar_one_or_none() is not None

    result = await db.execute(
        select(UserGameProgress)
        .where(
            UserGameProgress.user_id == user_id,
            UserGameProgress.game_id == game_id,
        )
        .with_for_update(of=UserGameProgress)
        .execution_options(populate_existing=True)
    )
    progress = result.scalar_one()

    is_first_completion = completed_now and not progress.is_completed
    is_new_high_score = created or score > progress.score

    progress.score = max(progress.score, score)
    progress.max_score = max_score
    progress.completion_percentage = max(progress.completion_percentage, percentage)
    if is_first_completion:
        progress.is_completed = True
        progress.completed_at = now
    progress.time_spent_seconds += time_spent_seconds
    progress.attempts += 1
    if game_state:
        progress.game_state = game_state
    progress.last_played_at = now
    progress.updated_at = now

    await db.commit()
    logger.info(
        "Game %s played by %s: score %d/%d, first completion: %s",
        game_id, user_id, score, max_score, is_first_completion,
    )

    playcoins_awarded = 0
    xp_awarded = 0
    if is_first_completion:
        playcoins_awarded, xp_awarded = await _first_completion_followups(
            db, redis, user_id, game_id, game_name, playcoins_reward, xp_reward,
        )

    return GameCompletionResult(
        is_completed=completed_now,
        is_first_completion=is_first_completion,
        is_new_high_score=is_new_high_score,
        completion_percentage=percentage,
        playcoins_awarded=playcoins_awarded,
        xp_awarded=xp_awarded,
    )


async def _first_completion_followups(
    db: AsyncSession,
    redis: object,
    user_id: str,
    game_id: int,
    game_name: str,
    playcoins_reward: int,
    xp_reward: int,
) -> tuple[int, int]:
    """Rewards, streak and achievements, in that order, each committed separately.

    Returns the PlayCoins and XP actually granted; a skipped or failed payout counts as 0.
    """
    key = f"game:{game_id}:{user_id}"
    playcoins_awarded = 0
    xp_awarded = 0

    if playcoins_reward > 0:
        try:
            credited = await credit(
                db,
                user_id,
                playcoins_reward,
                source_type="game",
                source_id=str(game_id),
                description=f"Completed: {game_name}",
                idempotency_key=key,
            )
            await db.commit()
            playcoins_awarded = credited.amount_awarded
        except Exception:
            await db.rollback()
            logger.error("PlayCoins payout failed for game %s (user %s)", game_id, user_id, exc_info=True)

    if xp_reward > 0:
        try:
            granted = await add_xp(
                db,
                redis,
                user_id,
                xp_reward,
                source=f"game:{game_name}",
                source_id=str(game_id),
                idempotency_key=key,
            )
            await db.commit()
            xp_awarded = granted.xp_gained
        except Exception:
            await db.rollback()
            logger.error("XP payout failed for game %s (user %s)", game_id, user_id, exc_info=True)

    try:
        await touch_streak(db, redis, user_id)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error("Streak update failed after game %s (user %s)", game_id, user_id, exc_info=True)

    try:
        await evaluate_achievements(db, redis, user_id, trigger_type="game_completed")
    except Exception:
        await db.rollback()
        logger.error("Achievement check failed after game %s (user %s)", game_id, user_id, exc_info=True)

    return playcoins_awarded, xp_awarded
