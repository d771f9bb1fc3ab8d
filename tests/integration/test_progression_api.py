"""XP, streak, achievement, level and leaderboard endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import OTHER_USER_ID, USER_ID, auth_headers


class TestXP:
    @pytest.mark.asyncio
    async def test_add_xp_cascade(self, client: AsyncClient, service_headers) -> None:
        response = await client.post(
            "/api/v1/xp/add",
            json={"user_id": USER_ID, "xp_amount": 250, "source": "bonus"},
            headers=service_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["current_level"] == 3
        assert data["levels_gained"] == 2
        assert data["level_up"] is True
        assert data["xp_to_next_level"] == 225

    @pytest.mark.asyncio
    async def test_add_xp_rejects_zero(self, client: AsyncClient, service_headers) -> None:
        response = await client.post(
            "/api/v1/xp/add",
            json={"user_id": USER_ID, "xp_amount": 0},
            headers=service_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidAmount"

    @pytest.mark.asyncio
    async def test_level_defaults_for_new_user(self, client: AsyncClient, user_headers) -> None:
        response = await client.get("/api/v1/users/me/level", headers=user_headers)
        assert response.json() == {"current_level": 1, "current_xp": 0, "total_xp": 0, "xp_to_next_level": 100}

    @pytest.mark.asyncio
    async def test_xp_history(self, client: AsyncClient, service_headers, user_headers) -> None:
        await client.post(
            "/api/v1/xp/add",
            json={"user_id": USER_ID, "xp_amount": 15, "source": "game:Math Missions"},
            headers=service_headers,
        )
        data = (await client.get("/api/v1/users/me/xp/history", headers=user_headers)).json()
        assert data["total"] == 1
        assert data["entries"][0]["source"] == "game:Math Missions"

    @pytest.mark.asyncio
    async def test_levels_table_is_public(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/levels?max_level=4")
        levels = response.json()["levels"]
        assert [entry["xp_to_next_level"] for entry in levels] == [100, 150, 225, 337]

    @pytest.mark.asyncio
    async def test_user_cannot_supply_idempotency_key(self, client: AsyncClient, user_headers) -> None:
        response = await client.post(
            "/api/v1/xp/add",
            json={"user_id": USER_ID, "xp_amount": 5, "idempotency_key": f"achievement:1:{OTHER_USER_ID}"},
            headers=user_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_service_caller_may_supply_idempotency_key(self, client: AsyncClient, service_headers) -> None:
        body = {"user_id": USER_ID, "xp_amount": 5, "source": "bonus", "idempotency_key": "task:9"}
        first = await client.post("/api/v1/xp/add", json=body, headers=service_headers)
        retry = await client.post("/api/v1/xp/add", json=body, headers=service_headers)
        assert first.json()["xp_gained"] == 5
        assert retry.json()["xp_gained"] == 0
        assert retry.json()["total_xp"] == 5


class TestStreak:
    @pytest.mark.asyncio
    async def test_touch_then_read(self, client: AsyncClient, user_headers) -> None:
        first = await client.post("/api/v1/streak/touch", json={"user_id": USER_ID}, headers=user_headers)
        second = await client.post("/api/v1/streak/touch", json={"user_id": USER_ID}, headers=user_headers)

        assert first.json()["streak_increased"] is True
        assert second.json()["streak_maintained"] is True

        data = (await client.get("/api/v1/users/me/streak", headers=user_headers)).json()
        assert data["current_streak"] == 1
        assert data["is_active_today"] is True

    @pytest.mark.asyncio
    async def test_no_streak_yet(self, client: AsyncClient, user_headers) -> None:
        data = (await client.get("/api/v1/users/me/streak", headers=user_headers)).json()
        assert data == {"current_streak": 0, "longest_streak": 0, "last_activity_date": None, "is_active_today": False}


class TestAchievements:
    @pytest.mark.asyncio
    async def test_check_unlocks_level_achievement(self, client: AsyncClient, catalog, service_headers, user_headers) -> None:
        await client.post(
            "/api/v1/xp/add",
            json={"user_id": USER_ID, "xp_amount": 100},
            headers=service_headers,
        )
        response = await client.post(
            "/api/v1/achievements/check",
            json={"user_id": USER_ID, "trigger_type": "level_up"},
            headers=service_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert [a["slug"] for a in data["newly_unlocked"]] == ["level_2"]
        assert data["total_unlocked"] == 1

        mine = (await client.get("/api/v1/users/me/achievements", headers=user_headers)).json()
        assert mine["total_available"] == 3
        assert mine["total_unlocked"] == 1
        unlocked = {a["slug"]: a["unlocked"] for a in mine["achievements"]}
        assert unlocked == {"first_game": False, "level_2": True, "streak_3": False}

    @pytest.mark.asyncio
    async def test_catalog_is_public(self, client: AsyncClient, catalog) -> None:
        response = await client.get("/api/v1/achievements")
        assert [a["slug"] for a in response.json()] == ["first_game", "level_2", "streak_3"]


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_ranked_by_total_xp(self, client: AsyncClient, service_headers) -> None:
        for user_id, xp in (("alpha", 50), (USER_ID, 300), ("gamma", 120)):
            await client.post(
                "/api/v1/xp/add",
                json={"user_id": user_id, "xp_amount": xp, "source": "bonus"},
                headers=service_headers,
            )

        response = await client.get("/api/v1/leaderboard?limit=2", headers=auth_headers("alpha"))
        assert response.status_code == 200
        data = response.json()
        assert [(e["rank"], e["user_id"], e["total_xp"]) for e in data["entries"]] == [
            (1, USER_ID, 300),
            (2, "gamma", 120),
        ]
        assert data["entries"][0]["current_level"] == 3
        # Rank is overall, not limited to the returned page
        assert data["user_rank"] == 3

    @pytest.mark.asyncio
    async def test_user_without_xp_has_no_rank(self, client: AsyncClient, user_headers) -> None:
        data = (await client.get("/api/v1/leaderboard", headers=user_headers)).json()
        assert data == {"entries": [], "user_rank": None}

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/leaderboard")
        assert response.status_code == 401
