"""Game completion over HTTP, including the full first-completion cascade."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import USER_ID


def _body(game_id: int, score: int, max_score: int = 10, **extra) -> dict:
    return {"user_id": USER_ID, "game_id": game_id, "score": score, "max_score": max_score,
            "time_spent_seconds": 90, **extra}


class TestCompleteGameAPI:
    @pytest.mark.asyncio
    async def test_first_completion(self, client: AsyncClient, catalog, user_headers) -> None:
        response = await client.post("/api/v1/games/complete", json=_body(catalog["game"], 8), headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "is_completed": True,
            "is_first_completion": True,
            "is_new_high_score": True,
            "completion_percentage": 80,
            "playcoins_awarded": 20,
            "xp_awarded": 40,
        }

        wallet = (await client.get("/api/v1/users/me/wallet", headers=user_headers)).json()
        assert wallet["balance"] == 30

        progress = (await client.get("/api/v1/users/me/games/progress", headers=user_headers)).json()
        assert progress["total_completed"] == 1
        assert progress["progress"][0]["attempts"] == 1

    @pytest.mark.asyncio
    async def test_replay_pays_nothing(self, client: AsyncClient, catalog, user_headers) -> None:
        await client.post("/api/v1/games/complete", json=_body(catalog["game"], 8), headers=user_headers)
        again = await client.post("/api/v1/games/complete", json=_body(catalog["game"], 9), headers=user_headers)

        data = again.json()
        assert data["is_first_completion"] is False
        assert data["playcoins_awarded"] == 0
        assert data["is_new_high_score"] is True

    @pytest.mark.asyncio
    async def test_unknown_game(self, client: AsyncClient, catalog, user_headers) -> None:
        response = await client.post("/api/v1/games/complete", json=_body(404, 8), headers=user_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "GameNotFound"

    @pytest.mark.asyncio
    async def test_negative_score_is_validation_error(self, client: AsyncClient, catalog, user_headers) -> None:
        response = await client.post("/api/v1/games/complete", json=_body(catalog["game"], -1), headers=user_headers)
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_games_catalog_is_public(self, client: AsyncClient, catalog) -> None:
        response = await client.get("/api/v1/games?subject=mathematics")
        assert [g["slug"] for g in response.json()] == ["math-missions"]
