"""Request and response models for game endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CompleteGameRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    game_id: int
    score: int = Field(ge=0)
    max_score: int = Field(ge=0)
    time_spent_seconds: int = Field(default=0, ge=0)
    game_state: dict[str, Any] | None = None


class CompleteGameResponse(BaseModel):
    success: bool = True
    is_completed: bool
    is_first_completion: bool
    is_new_high_score: bool
    completion_percentage: int
    playcoins_awarded: int
    xp_awarded: int


class GameResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    subject: str
    description: str | None = None
    difficulty_level: int
    playcoins_reward: int
    xp_reward: int


class GameProgressEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    game_id: int
    score: int
    max_score: int
    completion_percentage: int
    is_completed: bool
    completed_at: datetime | None = None
    time_spent_seconds: int
    attempts: int
    game_state: dict[str, Any] = {}
    last_played_at: datetime | None = None


class GameProgressResponse(BaseModel):
    progress: list[GameProgressEntry]
    total_completed: int
