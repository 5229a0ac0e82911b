"""End-to-end tests for /api/treasures."""

import uuid

import pytest
from httpx import AsyncClient

from tests.helpers import create_treasure


class TestPlaceTreasure:
    @pytest.mark.asyncio
    async def test_place_returns_full_coupon(self, client: AsyncClient):
        body = await create_treasure(client, total_boxes=3)
        uuid.UUID(body["id"])
        assert body["name"] == "Noodle House"
        assert body["totalBoxes"] == 3
        assert body["remainingBoxes"] == 3
        assert body["discount"] == "10%"
        assert body["discountBaht"] is None

    @pytest.mark.asyncio
    async def test_total_defaults_to_one(self, client: AsyncClient):
        body = await create_treasure(client, total_boxes=None)
        assert body["totalBoxes"] == 1
        assert body["remainingBoxes"] == 1

    @pytest.mark.asyncio
    async def test_client_cannot_set_remaining(self, client: AsyncClient):
        body = await create_treasure(client, total_boxes=2, remainingBoxes=99)
        assert body["remainingBoxes"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [{"totalBoxes": 0}, {"lat": 91}, {"lng": -181}, {"name": ""}],
    )
    async def test_invalid_body_rejected(self, client: AsyncClient, overrides: dict):
        body = {"lat": 13.7, "lng": 100.5, "name": "Shop", "totalBoxes": 1}
        body.update(overrides)
        response = await client.post("/api/treasures", json=body)
        assert response.status_code == 400


class TestListTreasures:
    @pytest.mark.asyncio
    async def test_empty_list(self, client: AsyncClient):
        response = await client.get("/api/treasures")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_lists_available_oldest_first(self, client: AsyncClient):
        first = await create_treasure(client, name="First")
        second = await create_treasure(client, name="Second")
        response = await client.get("/api/treasures")
        assert [c["id"] for c in response.json()] == [first["id"], second["id"]]

    @pytest.mark.asyncio
    async def test_listing_counts_as_app_open(self, client: AsyncClient):
        await client.get("/api/treasures")
        await client.get("/api/treasures")
        stats = (await client.get("/api/stats")).json()
        assert stats["appOpenCount"] == 2
        assert stats["lastAppOpen"] is not None


class TestClaimTreasure:
    @pytest.mark.asyncio
    async def test_claim_until_exhausted(self, client: AsyncClient):
        """Place 2 boxes, claim twice, then the third claim is a 404 and the coupon is gone."""
        coupon = await create_treasure(client, total_boxes=2)
        coupon_id = coupon["id"]

        first = await client.patch(f"/api/treasures/{coupon_id}")
        assert first.status_code == 200
        assert first.json()["remainingBoxes"] == 1

        second = await client.patch(f"/api/treasures/{coupon_id}")
        assert second.status_code == 200
        assert second.json()["remainingBoxes"] == 0

        third = await client.patch(f"/api/treasures/{coupon_id}")
        assert third.status_code == 404

        listing = (await client.get("/api/treasures")).json()
        assert coupon_id not in [c["id"] for c in listing]

        stats = (await client.get("/api/stats")).json()
        assert stats["treasuresCreatedCount"] == 1
        assert stats["treasuresOpenedCount"] == 3
        assert stats["treasuresCompletedCount"] == 1

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, client: AsyncClient):
        response = await client.patch("/api/treasures/not-a-uuid")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid coupon id"

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, client: AsyncClient):
        response = await client.patch(f"/api/treasures/{uuid.uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_signed_in_claim_grants_rewards(self, client: AsyncClient, alice: dict):
        coupon = await create_treasure(client, total_boxes=5)
        response = await client.patch(f"/api/treasures/{coupon['id']}", headers=alice["headers"])
        assert response.status_code == 200

        profile = (await client.get("/api/game/profile", headers=alice["headers"])).json()
        assert profile["xp"] == 10
        assert profile["coins"] == 5

    @pytest.mark.asyncio
    async def test_bad_token_on_optional_route_is_401(self, client: AsyncClient):
        coupon = await create_treasure(client, total_boxes=2)
        response = await client.patch(
            f"/api/treasures/{coupon['id']}",
            headers={"Authorization": "Bearer garbage"},
        )
        assert response.status_code == 401
        listing = (await client.get("/api/treasures")).json()
        assert listing[0]["remainingBoxes"] == 2


class TestOptionalAuthorization:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["Token garbage", "garbage.jwt.value", "Basic YWxpY2U6cHc="])
    async def test_malformed_header_rejects_placement(self, client: AsyncClient, value: str):
        body = {"lat": 13.7, "lng": 100.5, "name": "Noodle House", "totalBoxes": 1}
        response = await client.post("/api/treasures", json=body, headers={"Authorization": value})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Bearer error="invalid_token"'
        assert (await client.get("/api/treasures")).json() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["", "Bearer"])
    async def test_empty_header_places_anonymously(self, client: AsyncClient, value: str):
        await create_treasure(client, total_boxes=1, headers={"Authorization": value})
        assert len((await client.get("/api/treasures")).json()) == 1

    @pytest.mark.asyncio
    async def test_bare_token_is_credited(self, client: AsyncClient, alice: dict):
        coupon = await create_treasure(client, total_boxes=3)
        response = await client.patch(f"/api/treasures/{coupon['id']}", headers={"Authorization": alice["token"]})
        assert response.status_code == 200

        profile = (await client.get("/api/game/profile", headers=alice["headers"])).json()
        assert profile["coins"] == 5
