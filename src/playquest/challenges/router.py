"""Daily and weekly challenge endpoints. All act on the authenticated user."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.auth.dependencies import get_current_user_id
from playquest.challenges import service
from playquest.challenges.periods import ChallengeCadence, days_until_reset, next_reset, period_start
from playquest.challenges.schemas import (
    ChallengeEntry,
    ChallengeListResponse,
    ClaimResponse,
    InitializeResponse,
    ProgressRequest,
    ProgressResponse,
)
from playquest.database import get_session
from playquest.db.models import Challenge, UserChallenge
from playquest.dependencies import get_redis_dep

router = APIRouter(prefix="/api/v1/challenges", tags=["Challenges"])


def _entry(challenge: Challenge, row: UserChallenge | None) -> ChallengeEntry:
    return ChallengeEntry(
        id=challenge.id,
        slug=challenge.slug,
        title=challenge.title,
        description=challenge.description,
        challenge_type=challenge.challenge_type,
        requirement_value=challenge.requirement_value,
        playcoins_reward=challenge.playcoins_reward,
        xp_reward=challenge.xp_reward,
        user_challenge_id=row.id if row else None,
        progress=row.progress if row else 0,
        is_completed=row.is_completed if row else False,
        is_claimed=row.is_claimed if row else False,
        completed_at=row.completed_at if row else None,
    )


@router.post("/claim/{user_challenge_id}", response_model=ClaimResponse)
async def claim(
    user_challenge_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Claim a completed challenge's rewards (once)."""
    result = await service.claim_challenge(db, redis, user_id, user_challenge_id)
    return ClaimResponse(
        user_challenge_id=result.user_challenge_id,
        playcoins_awarded=result.playcoins_awarded,
        xp_awarded=result.xp_awarded,
        claimed_at=result.claimed_at,
    )


@router.post("/{cadence}/initialize", response_model=InitializeResponse)
async def initialize(
    cadence: ChallengeCadence,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    now = datetime.now(timezone.utc)
    created = await service.initialize_for_period(db, user_id, cadence, now)
    await db.commit()
    return InitializeResponse(created=created, period_start=period_start(cadence, now))


@router.post("/{cadence}/progress", response_model=ProgressResponse)
async def progress(
    cadence: ChallengeCadence,
    body: ProgressRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Advance every current challenge of ``challenge_type`` by ``increment``."""
    rows = await service.bump_progress(db, user_id, cadence, body.challenge_type, body.increment)
    updated = [_entry(row.challenge, row) for row in rows]
    await db.commit()
    return ProgressResponse(updated=updated)


@router.get("/{cadence}", response_model=ChallengeListResponse)
async def list_challenges(
    cadence: ChallengeCadence,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    now = datetime.now(timezone.utc)
    start, pairs = await service.list_for_period(db, user_id, cadence, now)
    entries = [_entry(challenge, row) for challenge, row in pairs]
    return ChallengeListResponse(
        cadence=cadence.value,
        period_start=start,
        resets_at=next_reset(cadence, now),
        days_until_reset=days_until_reset(now) if cadence is ChallengeCadence.WEEKLY else None,
        challenges=entries,
        completed_count=sum(1 for e in entries if e.is_completed),
        claimable_count=sum(1 for e in entries if e.is_completed and not e.is_claimed),
        total_count=len(entries),
    )
