"""Daily and weekly challenge progress.

Rows are keyed by (user, challenge, period_start). A new period simply gets
new rows; old rows stay for history and drop out of the current view by their
period_start. A completed row is frozen, and claiming pays its rewards in the
same transaction that flips ``is_claimed``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.challenges.periods import ChallengeCadence, period_start
from playquest.database import upsert
from playquest.db.models import Challenge, UserChallenge
from playquest.errors import (
    ChallengeAlreadyClaimed,
    ChallengeNotCompleted,
    ChallengeNotFound,
    InvalidAmount,
)
from playquest.gamification.xp_service import add_xp
from playquest.ledger.service import credit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimResult:
    user_challenge_id: int
    playcoins_awarded: int
    xp_awarded: int
    claimed_at: datetime


async def list_active_challenges(db: AsyncSession, cadence: ChallengeCadence) -> list[Challenge]:
    result = await db.execute(
        select(Challenge)
        .where(Challenge.cadence == cadence.value, Challenge.is_active.is_(True))
        .order_by(Challenge.id)
    )
    return list(result.scalars().all())


async def initialize_for_period(
    db: AsyncSession,
    user_id: str,
    cadence: ChallengeCadence,
    now: datetime | None = None,
) -> int:
    """Create missing progress rows for the current period. Returns rows created."""
    start = period_start(cadence, now)
    table = UserChallenge.__table__
    created = 0

    for challenge in await list_active_challenges(db, cadence):
        stmt = (
            upsert(db, table)
            .values(
                user_id=user_id,
                challenge_id=challenge.id,
                period_start=start,
                progress=0,
                is_completed=False,
                is_claimed=False,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "challenge_id", "period_start"])
            .returning(table.c.id)
        )
        if (await db.execute(stmt)).scalar_one_or_none() is not None:
            created += 1

    if created:
        logger.info("Initialized %d %s challenges for %s (%s)", created, cadence.value, user_id, start)
    return created


async def bump_progress(
    db: AsyncSession,
    user_id: str,
    cadence: ChallengeCadence,
    challenge_type: str,
    increment: int = 1,
    now: datetime | None = None,
) -> list[UserChallenge]:
    """Advance every current-period challenge matching ``challenge_type``.

    Completed rows are left untouched. Returns the matching rows.
    """
    if increment is None or increment <= 0:
        msg = "increment must be a positive integer"
        raise InvalidAmount(msg)

    if now is None:
        now = datetime.now(timezone.utc)
    await initialize_for_period(db, user_id, cadence, now)
    start = period_start(cadence, now)

    result = await db.execute(
        select(UserChallenge)
        .join(Challenge, UserChallenge.challenge_id == Challenge.id)
        .where(
            UserChallenge.user_id == user_id,
            UserChallenge.period_start == start,
            Challenge.cadence == cadence.value,
            Challenge.challenge_type == challenge_type,
            Challenge.is_active.is_(True),
        )
        .with_for_update(of=UserChallenge)
        .execution_options(populate_existing=True)
    )
    rows = list(result.scalars().all())

    for row in rows:
        if row.is_completed:
            continue
        row.progress += increment
        if row.progress >= row.challenge.requirement_value:
            row.is_completed = True
            row.completed_at = now
            logger.info("Challenge %s completed by %s", row.challenge.slug, user_id)

    await db.flush()
    return rows


async def claim_challenge(
    db: AsyncSession,
    redis: object,
    user_id: str,
    user_challenge_id: int,
) -> ClaimResult:
    """Claim a completed challenge and credit its rewards, all in one commit."""
    result = await db.execute(
        select(UserChallenge)
        .where(
            UserChallenge.id == user_challenge_id,
            UserChallenge.user_id == user_id,
        )
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise ChallengeNotFound

    challenge = row.challenge
    playcoins = challenge.playcoins_reward
    xp = challenge.xp_reward
    title = challenge.title
    was_completed = row.is_completed

    now = datetime.now(timezone.utc)
    table = UserChallenge.__table__
    flipped = await db.execute(
        update(table)
        .where(
            table.c.id == user_challenge_id,
            table.c.user_id == user_id,
            table.c.is_completed.is_(True),
            table.c.is_claimed.is_(False),
        )
        .values(is_claimed=True, claimed_at=now)
        .returning(table.c.id)
    )
    if flipped.scalar_one_or_none() is None:
        if not was_completed:
            raise ChallengeNotCompleted
        raise ChallengeAlreadyClaimed

    key = f"challenge:{user_challenge_id}"
    if playcoins > 0:
        await credit(
            db,
            user_id,
            playcoins,
            source_type="challenge",
            source_id=str(user_challenge_id),
            description=f"Challenge: {title}",
            idempotency_key=key,
        )
    if xp > 0:
        await add_xp(
            db,
            redis,
            user_id,
            xp,
            source=f"challenge:{title}",
            source_id=str(user_challenge_id),
            idempotency_key=key,
        )

    await db.commit()
    logger.info("Challenge %d claimed by %s (+%d coins, +%d XP)", user_challenge_id, user_id, playcoins, xp)
    return ClaimResult(
        user_challenge_id=user_challenge_id,
        playcoins_awarded=playcoins,
        xp_awarded=xp,
        claimed_at=now,
    )


async def list_for_period(
    db: AsyncSession,
    user_id: str,
    cadence: ChallengeCadence,
    now: datetime | None = None,
) -> tuple[date, list[tuple[Challenge, UserChallenge | None]]]:
    """Active challenges for the current period paired with the user's rows."""
    start = period_start(cadence, now)
    challenges = await list_active_challenges(db, cadence)
    result = await db.execute(
        select(UserChallenge)
        .where(
            UserChallenge.user_id == user_id,
            UserChallenge.period_start == start,
        )
        .execution_options(populate_existing=True)
    )
    by_challenge = {row.challenge_id: row for row in result.scalars()}
    return start, [(c, by_challenge.get(c.id)) for c in challenges]
