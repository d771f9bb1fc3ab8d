"""Challenge periods, per-period progress, freezing and claim-once."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from playquest.challenges.periods import (
    ChallengeCadence,
    days_until_reset,
    next_reset,
    period_start,
)
from playquest.challenges.service import (
    bump_progress,
    claim_challenge,
    initialize_for_period,
    list_for_period,
)
from playquest.errors import (
    ChallengeAlreadyClaimed,
    ChallengeNotCompleted,
    ChallengeNotFound,
    InvalidAmount,
)
from playquest.gamification.xp_service import get_level_state
from playquest.ledger.service import get_wallet

USER = "challenger"
# Wednesday
NOW = datetime(2026, 3, 11, 15, 0, tzinfo=timezone.utc)


class TestPeriods:
    def test_daily_period_is_utc_date(self) -> None:
        late_local = datetime(2026, 3, 11, 22, 0, tzinfo=timezone(timedelta(hours=-4)))
        assert period_start(ChallengeCadence.DAILY, late_local) == date(2026, 3, 12)

    def test_weekly_period_starts_monday(self) -> None:
        assert period_start(ChallengeCadence.WEEKLY, NOW) == date(2026, 3, 9)
        sunday = datetime(2026, 3, 15, 23, 59, tzinfo=timezone.utc)
        assert period_start(ChallengeCadence.WEEKLY, sunday) == date(2026, 3, 9)

    def test_week_across_year_boundary(self) -> None:
        new_year = datetime(2027, 1, 1, tzinfo=timezone.utc)
        assert period_start(ChallengeCadence.WEEKLY, new_year) == date(2026, 12, 28)

    def test_next_reset(self) -> None:
        assert next_reset(ChallengeCadence.DAILY, NOW) == datetime(2026, 3, 12, tzinfo=timezone.utc)
        assert next_reset(ChallengeCadence.WEEKLY, NOW) == datetime(2026, 3, 16, tzinfo=timezone.utc)

    def test_days_until_reset(self) -> None:
        assert days_until_reset(NOW) == 5
        assert days_until_reset(datetime(2026, 3, 15, tzinfo=timezone.utc)) == 1


class TestInitialize:
    @pytest.mark.asyncio
    async def test_idempotent(self, db_session, catalog) -> None:
        assert await initialize_for_period(db_session, USER, ChallengeCadence.DAILY, NOW) == 1
        assert await initialize_for_period(db_session, USER, ChallengeCadence.DAILY, NOW) == 0

    @pytest.mark.asyncio
    async def test_new_period_gets_new_rows(self, db_session, catalog) -> None:
        await initialize_for_period(db_session, USER, ChallengeCadence.DAILY, NOW)
        tomorrow = NOW + timedelta(days=1)
        assert await initialize_for_period(db_session, USER, ChallengeCadence.DAILY, tomorrow) == 1


class TestBumpProgress:
    @pytest.mark.asyncio
    async def test_progress_until_completed_then_frozen(self, db_session, catalog) -> None:
        rows = await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed", now=NOW)
        assert [(r.progress, r.is_completed) for r in rows] == [(1, False)]

        rows = await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed", now=NOW)
        assert [(r.progress, r.is_completed) for r in rows] == [(2, True)]

        rows = await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed", now=NOW)
        assert [(r.progress, r.is_completed) for r in rows] == [(2, True)]

    @pytest.mark.asyncio
    async def test_other_types_untouched(self, db_session, catalog) -> None:
        rows = await bump_progress(db_session, USER, ChallengeCadence.DAILY, "quiz_correct", now=NOW)
        assert rows == []

    @pytest.mark.asyncio
    async def test_weekly_increment(self, db_session, catalog) -> None:
        rows = await bump_progress(db_session, USER, ChallengeCadence.WEEKLY, "quiz_correct", increment=3, now=NOW)
        assert rows[0].progress == 3
        friday = NOW + timedelta(days=2)
        rows = await bump_progress(db_session, USER, ChallengeCadence.WEEKLY, "quiz_correct", increment=3, now=friday)
        assert rows[0].progress == 6
        assert rows[0].is_completed is True

    @pytest.mark.asyncio
    async def test_new_day_starts_from_zero(self, db_session, catalog) -> None:
        await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed", now=NOW)
        rows = await bump_progress(
            db_session, USER, ChallengeCadence.DAILY, "games_completed", now=NOW + timedelta(days=1)
        )
        assert rows[0].progress == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("increment", [0, -1])
    async def test_non_positive_increment_rejected(self, db_session, catalog, increment: int) -> None:
        with pytest.raises(InvalidAmount):
            await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed", increment, now=NOW)


class TestClaim:
    async def _completed_row_id(self, db) -> int:
        rows = await bump_progress(db, USER, ChallengeCadence.DAILY, "games_completed", increment=2)
        await db.commit()
        return rows[0].id

    @pytest.mark.asyncio
    async def test_claim_pays_once(self, db_session, catalog, redis_mock) -> None:
        row_id = await self._completed_row_id(db_session)

        result = await claim_challenge(db_session, redis_mock, USER, row_id)
        assert result.playcoins_awarded == 10
        assert result.xp_awarded == 20

        wallet = await get_wallet(db_session, USER)
        assert wallet.balance == 10
        level = await get_level_state(db_session, USER)
        assert level.total_xp == 20

        with pytest.raises(ChallengeAlreadyClaimed):
            await claim_challenge(db_session, redis_mock, USER, row_id)
        wallet = await get_wallet(db_session, USER)
        assert wallet.balance == 10

    @pytest.mark.asyncio
    async def test_incomplete_cannot_be_claimed(self, db_session, catalog) -> None:
        rows = await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed")
        await db_session.commit()

        with pytest.raises(ChallengeNotCompleted):
            await claim_challenge(db_session, None, USER, rows[0].id)
        assert await get_wallet(db_session, USER) is None

    @pytest.mark.asyncio
    async def test_other_users_row_not_found(self, db_session, catalog) -> None:
        row_id = await self._completed_row_id(db_session)
        with pytest.raises(ChallengeNotFound):
            await claim_challenge(db_session, None, "someone-else", row_id)

    @pytest.mark.asyncio
    async def test_list_reflects_claim(self, db_session, catalog) -> None:
        row_id = await self._completed_row_id(db_session)
        await claim_challenge(db_session, None, USER, row_id)

        start, pairs = await list_for_period(db_session, USER, ChallengeCadence.DAILY)
        assert start == period_start(ChallengeCadence.DAILY)
        [(challenge, row)] = pairs
        assert challenge.slug == "daily_play_2"
        assert row.is_completed is True
        assert row.is_claimed is True
        assert row.claimed_at is not None


class TestListForPeriod:
    @pytest.mark.asyncio
    async def test_uninitialized_challenges_have_no_row(self, db_session, catalog) -> None:
        _, pairs = await list_for_period(db_session, USER, ChallengeCadence.WEEKLY, NOW)
        assert [(c.slug, row) for c, row in pairs] == [("weekly_quiz", None)]

    @pytest.mark.asyncio
    async def test_old_period_rows_hidden(self, db_session, catalog) -> None:
        await bump_progress(db_session, USER, ChallengeCadence.DAILY, "games_completed", now=NOW)
        await db_session.commit()

        _, pairs = await list_for_period(db_session, USER, ChallengeCadence.DAILY, NOW + timedelta(days=1))
        assert pairs[0][1] is None
