"""Tests for the shop catalog and purchases."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.service import get_user_by_username
from goldticket.game.service import grant_rewards
from goldticket.shop.seed import SHOP_SEED_DATA, seed_shop_items


async def _fund(db: AsyncSession, username: str, coins: int) -> None:
    user = await get_user_by_username(db, username)
    await grant_rewards(db, user.id, coins=coins)
    await db.commit()


async def _buy(client: AsyncClient, headers: dict, item_id: str):
    return await client.post("/api/shop/purchase", json={"itemId": item_id}, headers=headers)


class TestCatalog:
    @pytest.mark.asyncio
    async def test_lists_seeded_items_in_order(self, client: AsyncClient, alice: dict):
        response = await client.get("/api/shop/items", headers=alice["headers"])
        assert response.status_code == 200
        items = response.json()
        assert [i["id"] for i in items] == [s["id"] for s in SHOP_SEED_DATA]
        assert items[0] == {"id": "skin_default", "name": "Natural", "slot": "skin", "price": 0}

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient):
        response = await client.get("/api/shop/items")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_seeding_is_idempotent(self, client: AsyncClient, db_session: AsyncSession, alice: dict):
        await seed_shop_items(db_session)
        response = await client.get("/api/shop/items", headers=alice["headers"])
        assert len(response.json()) == len(SHOP_SEED_DATA)


class TestPurchase:
    @pytest.mark.asyncio
    async def test_purchase_debits_and_adds_inventory(
        self, client: AsyncClient, db_session: AsyncSession, alice: dict
    ):
        await _fund(db_session, "alice", 100)
        response = await _buy(client, alice["headers"], "shirt_hawaii")
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["item"]["id"] == "shirt_hawaii"
        assert data["coins"] == 60

        profile = (await client.get("/api/game/profile", headers=alice["headers"])).json()
        assert profile["coins"] == 60
        assert [i["itemId"] for i in profile["inventory"]] == ["shirt_hawaii"]

    @pytest.mark.asyncio
    async def test_insufficient_coins(self, client: AsyncClient, db_session: AsyncSession, alice: dict):
        await _fund(db_session, "alice", 10)
        response = await _buy(client, alice["headers"], "hair_crown")
        assert response.status_code == 400
        assert response.json()["detail"] == "Not enough coins"

        profile = (await client.get("/api/game/profile", headers=alice["headers"])).json()
        assert profile["coins"] == 10
        assert profile["inventory"] == []

    @pytest.mark.asyncio
    async def test_already_owned(self, client: AsyncClient, db_session: AsyncSession, alice: dict):
        await _fund(db_session, "alice", 100)
        assert (await _buy(client, alice["headers"], "hair_long")).status_code == 200
        again = await _buy(client, alice["headers"], "hair_long")
        assert again.status_code == 409

        profile = (await client.get("/api/game/profile", headers=alice["headers"])).json()
        assert profile["coins"] == 75

    @pytest.mark.asyncio
    async def test_unknown_item(self, client: AsyncClient, alice: dict):
        response = await _buy(client, alice["headers"], "jetpack")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_exact_balance_buys(self, client: AsyncClient, db_session: AsyncSession, alice: dict):
        await _fund(db_session, "alice", 30)
        response = await _buy(client, alice["headers"], "skin_tan")
        assert response.status_code == 200
        assert response.json()["coins"] == 0
