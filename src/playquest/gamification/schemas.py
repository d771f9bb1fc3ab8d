"""Request and response models for XP, streak and achievement endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


# --- XP ---


class AddXPRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    xp_amount: int
    source: str = "bonus"
    source_id: str | None = None
    idempotency_key: str | None = Field(default=None, max_length=256)


class AddXPResponse(BaseModel):
    success: bool = True
    current_level: int
    current_xp: int
    total_xp: int
    xp_to_next_level: int
    xp_gained: int
    level_up: bool
    levels_gained: int


class LevelResponse(BaseModel):
    current_level: int = 1
    current_xp: int = 0
    total_xp: int = 0
    xp_to_next_level: int = 100


class XPHistoryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: int
    source: str
    source_id: str | None = None
    created_at: datetime | None = None


class XPHistoryResponse(BaseModel):
    entries: list[XPHistoryEntry]
    total: int
    page: int
    per_page: int


class LevelEntry(BaseModel):
    level: int
    xp_to_next_level: int
    cumulative: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


# --- Streak ---


class StreakTouchRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)


class StreakTouchResponse(BaseModel):
    success: bool = True
    current_streak: int
    longest_streak: int
    streak_increased: bool
    streak_maintained: bool


class StreakResponse(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: date | None = None
    is_active_today: bool = False


# --- Achievements ---


class CheckAchievementsRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    trigger_type: str | None = None


class UnlockedAchievementEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    xp_reward: int
    playcoins_reward: int


class CheckAchievementsResponse(BaseModel):
    success: bool = True
    newly_unlocked: list[UnlockedAchievementEntry]
    total_unlocked: int


class AchievementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    description: str
    category: str
    requirement_type: str
    requirement_value: int
    xp_reward: int
    playcoins_reward: int


class UserAchievementEntry(AchievementResponse):
    unlocked: bool = False
    unlocked_at: datetime | None = None


class UserAchievementsResponse(BaseModel):
    achievements: list[UserAchievementEntry]
    total_available: int
    total_unlocked: int


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    user_id: str
    current_level: int
    total_xp: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]
    user_rank: int | None = None
