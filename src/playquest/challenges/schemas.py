"""Request and response models for challenge endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class ProgressRequest(BaseModel):
    challenge_type: str = Field(min_length=1, max_length=32)
    increment: int = 1


class InitializeResponse(BaseModel):
    success: bool = True
    created: int
    period_start: date


class ChallengeEntry(BaseModel):
    id: int
    slug: str
    title: str
    description: str
    challenge_type: str
    requirement_value: int
    playcoins_reward: int
    xp_reward: int
    user_challenge_id: int | None = None
    progress: int = 0
    is_completed: bool = False
    is_claimed: bool = False
    completed_at: datetime | None = None


class ChallengeListResponse(BaseModel):
    cadence: str
    period_start: date
    resets_at: datetime
    days_until_reset: int | None = None
    challenges: list[ChallengeEntry]
    completed_count: int
    claimable_count: int
    total_count: int


class ProgressResponse(BaseModel):
    success: bool = True
    updated: list[ChallengeEntry]


class ClaimResponse(BaseModel):
    success: bool = True
    user_challenge_id: int
    playcoins_awarded: int
    xp_awarded: int
    claimed_at: datetime
