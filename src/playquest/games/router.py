"""Game catalog, completion and progress endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from playquest.auth.dependencies import authorize_user, get_current_claims, get_current_user_id
from playquest.database import get_session
from playquest.dependencies import get_redis_dep
from playquest.games import service
from playquest.games.schemas import (
    CompleteGameRequest,
    CompleteGameResponse,
    GameProgressEntry,
    GameProgressResponse,
    GameResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Games"])


@router.get("/games", response_model=list[GameResponse])
async def list_games(subject: str | None = None, db: AsyncSession = Depends(get_session)):
    games = await service.list_games(db, subject)
    return [GameResponse.model_validate(g) for g in games]


@router.post("/games/complete", response_model=CompleteGameResponse)
async def complete_game(
    body: CompleteGameRequest,
    claims: dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
):
    """Record a finished game; the first completion pays rewards."""
    authorize_user(claims, body.user_id)
    result = await service.complete_game(
        db,
        redis,
        body.user_id,
        body.game_id,
        score=body.score,
        max_score=body.max_score,
        time_spent_seconds=body.time_spent_seconds,
        game_state=body.game_state,
    )
    return CompleteGameResponse(
        is_completed=result.is_completed,
        is_first_completion=result.is_first_completion,
        is_new_high_score=result.is_new_high_score,
        completion_percentage=result.completion_percentage,
        playcoins_awarded=result.playcoins_awarded,
        xp_awarded=result.xp_awarded,
    )


@router.get("/users/me/games/progress", response_model=GameProgressResponse)
async def get_my_game_progress(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    rows = await service.get_game_progress(db, user_id)
    return GameProgressResponse(
        progress=[GameProgressEntry.model_validate(r) for r in rows],
        total_completed=sum(1 for r in rows if r.is_completed),
    )
