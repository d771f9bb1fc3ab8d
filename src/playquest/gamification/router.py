"""XP, streak, achievement and leaderboard endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.auth.dependencies import (
    authorize_user,
    get_current_claims,
    get_current_user_id,
    require_service_role,
)
from playquest.database import get_session
from playquest.db.models import Achievement
from playquest.dependencies import get_redis_dep
from playquest.gamification.achievement_service import evaluate_achievements, list_user_achievements
from playquest.gamification.leaderboard_service import DEFAULT_LIMIT, get_leaderboard, get_user_rank
from playquest.gamification.level_curve import MAX_LISTED_LEVEL, level_curve, xp_for_level
from playquest.gamification.schemas import (
    AchievementResponse,
    AddXPRequest,
    AddXPResponse,
    AllLevelsResponse,
    CheckAchievementsRequest,
    CheckAchievementsResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    LevelEntry,
    LevelResponse,
    StreakResponse,
    StreakTouchRequest,
    StreakTouchResponse,
    UnlockedAchievementEntry,
    UserAchievementEntry,
    UserAchievementsResponse,
    XPHistoryEntry,
    XPHistoryResponse,
)
from playquest.gamification.streak_service import get_streak, touch_streak, utc_today
from playquest.gamification.xp_service import add_xp, get_level_state, get_xp_history

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


# ── Service-style endpoints ──


@router.post("/xp/add", response_model=AddXPResponse)
async def add_experience(
    body: AddXPRequest,
    claims: dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    authorize_user(claims, body.user_id)
    if body.idempotency_key is not None:
        require_service_role(claims, "idempotency_key is reserved for service callers")
    result = await add_xp(
        db,
        redis,
        body.user_id,
        body.xp_amount,
        source=body.source,
        source_id=body.source_id,
        idempotency_key=body.idempotency_key,
    )
    await db.commit()
    return AddXPResponse(
        current_level=result.current_level,
        current_xp=result.current_xp,
        total_xp=result.total_xp,
        xp_to_next_level=result.xp_to_next_level,
        xp_gained=result.xp_gained,
        level_up=result.level_up,
        levels_gained=result.levels_gained,
    )


@router.post("/streak/touch", response_model=StreakTouchResponse)
async def touch_learning_streak(
    body: StreakTouchRequest,
    claims: dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    authorize_user(claims, body.user_id)
    result = await touch_streak(db, redis, body.user_id)
    await db.commit()
    return StreakTouchResponse(
        current_streak=result.current_streak,
        longest_streak=result.longest_streak,
        streak_increased=result.streak_increased,
        streak_maintained=result.streak_maintained,
    )


@router.post("/achievements/check", response_model=CheckAchievementsResponse)
async def check_achievements(
    body: CheckAchievementsRequest,
    claims: dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    authorize_user(claims, body.user_id)
    result = await evaluate_achievements(db, redis, body.user_id, trigger_type=body.trigger_type)
    return CheckAchievementsResponse(
        newly_unlocked=[UnlockedAchievementEntry.model_validate(a) for a in result.newly_unlocked],
        total_unlocked=result.total_unlocked,
    )


# ── Public endpoints ──


@router.get("/achievements", response_model=list[AchievementResponse])
async def list_achievements(db: AsyncSession = Depends(get_session)):
    result = await db.execute(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(Achievement.sort_order, Achievement.id)
    )
    return [AchievementResponse.model_validate(a) for a in result.scalars()]


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels(max_level: int = Query(MAX_LISTED_LEVEL, ge=1, le=200)):
    """The level curve: XP needed per level and cumulatively."""
    return AllLevelsResponse(levels=[LevelEntry(**entry) for entry in level_curve(max_level)])


# ── Authenticated user endpoints ──


@router.get("/users/me/level", response_model=LevelResponse)
async def get_my_level(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    state = await get_level_state(db, user_id)
    if state is None:
        return LevelResponse(xp_to_next_level=xp_for_level(1))
    return LevelResponse(
        current_level=state.current_level,
        current_xp=state.current_xp,
        total_xp=state.total_xp,
        xp_to_next_level=state.xp_to_next_level,
    )


@router.get("/users/me/xp/history", response_model=XPHistoryResponse)
async def get_my_xp_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    entries, total = await get_xp_history(db, user_id, page, per_page)
    return XPHistoryResponse(
        entries=[XPHistoryEntry.model_validate(e) for e in entries],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/users/me/streak", response_model=StreakResponse)
async def get_my_streak(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    streak = await get_streak(db, user_id)
    if streak is None:
        return StreakResponse()
    return StreakResponse(
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        last_activity_date=streak.last_activity_date,
        is_active_today=streak.last_activity_date == utc_today(),
    )


@router.get("/users/me/achievements", response_model=UserAchievementsResponse)
async def get_my_achievements(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Full active catalog with the caller's unlock state."""
    pairs = await list_user_achievements(db, user_id)
    entries = []
    for achievement, unlock in pairs:
        entry = UserAchievementEntry.model_validate(achievement)
        entry.unlocked = unlock is not None
        entry.unlocked_at = unlock.unlocked_at if unlock else None
        entries.append(entry)
    return UserAchievementsResponse(
        achievements=entries,
        total_available=len(entries),
        total_unlocked=sum(1 for e in entries if e.unlocked),
    )


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_xp_leaderboard(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Top users by lifetime XP plus the caller's overall rank."""
    rows = await get_leaderboard(db, limit)
    return LeaderboardResponse(
        entries=[LeaderboardEntry.model_validate(row) for row in rows],
        user_rank=await get_user_rank(db, user_id),
    )
