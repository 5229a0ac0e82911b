"""Tests for admin listings and the data wipe."""

import pytest
from httpx import AsyncClient

from goldticket.config import get_settings
from tests.helpers import create_sign, create_treasure


async def _wipe(client: AsyncClient, password: str):
    return await client.request("DELETE", "/api/admin/reset-data", json={"password": password})


class TestAdminAccess:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        ["/api/admin/treasures", "/api/admin/visitors", "/api/admin/referrers", "/api/admin/users"],
    )
    async def test_normal_user_forbidden(self, client: AsyncClient, alice: dict, path: str):
        response = await client.get(path, headers=alice["headers"])
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, client: AsyncClient):
        response = await client.get("/api/admin/users")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_role_assigned_at_registration(self, client: AsyncClient, admin: dict):
        response = await client.get("/api/auth/verify", headers=admin["headers"])
        assert response.json()["user"] == {"username": "boss", "role": "admin"}


class TestAdminListings:
    @pytest.mark.asyncio
    async def test_treasures_newest_placement_first(self, client: AsyncClient, admin: dict):
        older = await create_treasure(client, placementDate="2026-01-01T00:00:00Z", name="Older")
        newer = await create_treasure(client, placementDate="2026-06-01T00:00:00Z", name="Newer")

        response = await client.get("/api/admin/treasures", headers=admin["headers"])
        assert response.status_code == 200
        rows = response.json()
        assert [r["id"] for r in rows] == [newer["id"], older["id"]]
        assert set(rows[0]) == {"id", "placementDate", "name", "totalBoxes", "remainingBoxes"}

    @pytest.mark.asyncio
    async def test_treasure_detail(self, client: AsyncClient, admin: dict):
        coupon = await create_treasure(client)
        response = await client.get(f"/api/admin/treasures/{coupon['id']}", headers=admin["headers"])
        assert response.status_code == 200
        assert response.json() == coupon

        bad = await client.get("/api/admin/treasures/nope", headers=admin["headers"])
        assert bad.status_code == 400

    @pytest.mark.asyncio
    async def test_visitor_pagination(self, client: AsyncClient, admin: dict):
        for i in range(3):
            await client.get("/api/treasures", headers={"X-Forwarded-For": f"198.51.100.{i}"})

        page = (await client.get("/api/admin/visitors?page=2&limit=2", headers=admin["headers"])).json()
        assert page["pagination"] == {"currentPage": 2, "totalPages": 2, "totalVisitors": 3}
        assert len(page["data"]) == 1

    @pytest.mark.asyncio
    async def test_users_include_report_and_profile(self, client: AsyncClient, admin: dict, alice: dict):
        await create_treasure(client, headers=alice["headers"])
        await client.post("/api/game/daily-reward", headers=alice["headers"])

        users = (await client.get("/api/admin/users", headers=admin["headers"])).json()
        by_name = {u["username"]: u for u in users}
        assert set(by_name) == {"boss", "alice"}
        assert by_name["alice"]["treasuresPlaced"] == 1
        assert by_name["alice"]["coins"] == 20
        assert by_name["alice"]["lastLogin"] is not None
        assert "passwordHash" not in by_name["alice"]


class TestResetData:
    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient):
        response = await _wipe(client, "guess")
        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect password"

    @pytest.mark.asyncio
    async def test_wipe_everything_but_catalog(self, client: AsyncClient, alice: dict):
        await create_treasure(client, headers=alice["headers"])
        await create_sign(client, alice["headers"])
        await client.post("/api/stats/track-referrer", json={"referrer": "https://line.me/x"})

        response = await _wipe(client, "wipe-it")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "All data has been reset"
        assert body["results"]["treasures"] == 1
        assert body["results"]["users"] == 1
        assert body["results"]["signOptions"] == 3

        assert (await client.get("/api/treasures")).json() == []
        stats = (await client.get("/api/stats")).json()
        # The listing above recreated the ledger with a single app open
        assert stats["treasuresCreatedCount"] == 0
        assert stats["appOpenCount"] == 1

        login = await client.post("/api/auth/login", json={"username": "alice", "password": alice["password"]})
        assert login.status_code == 401

        bob = await client.post(
            "/api/auth/register", json={"username": "bob", "email": "bob@example.com", "password": "bobpass"}
        )
        assert bob.status_code == 201

    @pytest.mark.asyncio
    async def test_empty_configured_password_never_matches(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(get_settings(), "admin_reset_password", "")
        response = await _wipe(client, "anything")
        assert response.status_code == 401
