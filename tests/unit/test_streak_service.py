"""Streak transitions across UTC calendar days."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from playquest.db.models import LearningStreak
from playquest.gamification.streak_service import get_streak, touch_streak, utc_today

USER = "streak-user"
DAY = date(2026, 3, 10)


class TestTouchStreak:
    @pytest.mark.asyncio
    async def test_first_touch_starts_at_one(self, db_session) -> None:
        result = await touch_streak(db_session, None, USER, today=DAY)
        assert (result.current_streak, result.longest_streak) == (1, 1)
        assert result.streak_increased is True
        assert result.streak_maintained is False

    @pytest.mark.asyncio
    async def test_same_day_is_maintained(self, db_session) -> None:
        await touch_streak(db_session, None, USER, today=DAY)
        result = await touch_streak(db_session, None, USER, today=DAY)
        assert result.current_streak == 1
        assert result.streak_maintained is True
        assert result.streak_increased is False

    @pytest.mark.asyncio
    async def test_row_from_concurrent_first_touch_is_advanced(self, db_session) -> None:
        db_session.add(LearningStreak(
            user_id=USER, current_streak=1, longest_streak=1, last_activity_date=DAY - timedelta(days=1),
        ))
        await db_session.commit()

        result = await touch_streak(db_session, None, USER, today=DAY)

        assert (result.current_streak, result.longest_streak) == (2, 2)
        assert result.streak_increased is True

    @pytest.mark.asyncio
    async def test_consecutive_days_increment(self, db_session) -> None:
        for offset in range(4):
            result = await touch_streak(db_session, None, USER, today=DAY + timedelta(days=offset))
        assert result.current_streak == 4
        assert result.longest_streak == 4
        assert result.streak_increased is True

    @pytest.mark.asyncio
    async def test_gap_resets_but_keeps_longest(self, db_session, redis_mock) -> None:
        for offset in range(3):
            await touch_streak(db_session, redis_mock, USER, today=DAY + timedelta(days=offset))

        result = await touch_streak(db_session, redis_mock, USER, today=DAY + timedelta(days=5))
        assert result.current_streak == 1
        assert result.longest_streak == 3
        assert result.streak_increased is False
        assert result.streak_maintained is False

        channel, payload = redis_mock.publish.await_args.args
        assert channel == "pubsub:streak_update"
        assert json.loads(payload)["event"] == "streak_broken"
        assert json.loads(payload)["streak_length"] == 3

    @pytest.mark.asyncio
    async def test_longest_never_below_current(self, db_session) -> None:
        await touch_streak(db_session, None, USER, today=DAY)
        await touch_streak(db_session, None, USER, today=DAY + timedelta(days=3))
        for offset in range(4, 7):
            result = await touch_streak(db_session, None, USER, today=DAY + timedelta(days=offset))
            assert result.longest_streak >= result.current_streak
        assert result.current_streak == 4
        assert result.longest_streak == 4

    @pytest.mark.asyncio
    async def test_last_activity_date_recorded(self, db_session) -> None:
        await touch_streak(db_session, None, USER, today=DAY)
        await touch_streak(db_session, None, USER, today=DAY + timedelta(days=1))
        await db_session.commit()

        streak = await get_streak(db_session, USER)
        assert streak.last_activity_date == DAY + timedelta(days=1)


class TestUTCDay:
    def test_uses_utc_calendar_day(self) -> None:
        # 23:30 at UTC-05:00 is already the next day in UTC
        local = datetime(2026, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert utc_today(local) == date(2026, 3, 11)
