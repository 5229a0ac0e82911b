"""Tests for signs: placement rules, votes, comments, options and expiry."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.service import get_user_by_username
from goldticket.db.models import Sign, SignOption
from goldticket.signs.pruner import SignPruner
from goldticket.signs.service import create_sign as create_sign_record
from tests.helpers import create_sign, register_user


async def _vote(client: AsyncClient, sign_id: str, index: int, headers: dict):
    return await client.post(f"/api/signs/{sign_id}/vote", json={"optionIndex": index}, headers=headers)


class TestPlaceSign:
    @pytest.mark.asyncio
    async def test_poll_with_options(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        assert sign["type"] == "poll"
        assert [o["text"] for o in sign["options"]] == ["Pad Thai", "Som Tam", "Khao Man Gai"]
        assert [o["index"] for o in sign["options"]] == [0, 1, 2]
        assert sign["totalVotes"] == 0

    @pytest.mark.asyncio
    async def test_vote_defaults_to_yes_no(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"], type="vote", title="Open late?", options=None)
        assert [o["text"] for o in sign["options"]] == ["Yes", "No"]

    @pytest.mark.asyncio
    async def test_announcement_has_no_options(self, client: AsyncClient, alice: dict):
        sign = await create_sign(
            client, alice["headers"], type="announcement", message="Free tea today", title=None, options=None
        )
        assert sign["message"] == "Free tea today"
        assert sign["options"] == []

    @pytest.mark.asyncio
    async def test_expiry_is_a_day_after_creation(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        created = datetime.fromisoformat(sign["createdAt"])
        expires = datetime.fromisoformat(sign["expiresAt"])
        assert expires - created == timedelta(hours=24)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"type": "announcement", "message": "  ", "options": None},
            {"type": "poll", "title": None},
            {"type": "poll", "options": ["Only one"]},
            {"type": "poll", "options": ["Same", "same "]},
        ],
    )
    async def test_invalid_payload_is_400(self, client: AsyncClient, alice: dict, overrides: dict):
        body = {"lat": 13.75, "lng": 100.5, "type": "poll", "title": "T", "options": ["A", "B"]}
        body.update(overrides)
        response = await client.post("/api/signs", json=body, headers=alice["headers"])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_token(self, client: AsyncClient):
        response = await client.post("/api/signs", json={"lat": 1, "lng": 1, "type": "vote", "title": "x"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_cooldown_between_signs(self, client: AsyncClient, alice: dict):
        await create_sign(client, alice["headers"])
        response = await client.post(
            "/api/signs",
            json={"lat": 1, "lng": 1, "type": "vote", "title": "Again?"},
            headers=alice["headers"],
        )
        assert response.status_code == 429
        assert response.json()["detail"].startswith("You can place another sign at ")

        profile = (await client.get("/api/game/profile", headers=alice["headers"])).json()
        assert profile["lastSignPlacedAt"] is not None


class TestVoting:
    @pytest.mark.asyncio
    async def test_add_move_remove(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])

        added = await _vote(client, sign["id"], 0, alice["headers"])
        assert added.status_code == 200
        assert added.json()["action"] == "added"
        assert [o["votes"] for o in added.json()["sign"]["options"]] == [1, 0, 0]

        moved = await _vote(client, sign["id"], 2, alice["headers"])
        assert moved.json()["action"] == "moved"
        assert [o["votes"] for o in moved.json()["sign"]["options"]] == [0, 0, 1]

        removed = await _vote(client, sign["id"], 2, alice["headers"])
        assert removed.json()["action"] == "removed"
        assert removed.json()["sign"]["totalVotes"] == 0

    @pytest.mark.asyncio
    async def test_votes_from_several_users(self, client: AsyncClient, alice: dict):
        bob = await register_user(client, "bob", password="bobpass")
        sign = await create_sign(client, alice["headers"])
        await _vote(client, sign["id"], 1, alice["headers"])
        await _vote(client, sign["id"], 1, bob["headers"])

        listing = (await client.get("/api/signs")).json()
        assert listing[0]["totalVotes"] == 2
        assert listing[0]["options"][1]["votes"] == 2

        detail = (await client.get(f"/api/signs/{sign['id']}", headers=bob["headers"])).json()
        assert detail["myVote"] == 1

    @pytest.mark.asyncio
    async def test_out_of_range_option(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        response = await _vote(client, sign["id"], 3, alice["headers"])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_announcement_cannot_be_voted(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"], type="announcement", message="Hi", options=None)
        response = await _vote(client, sign["id"], 0, alice["headers"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_sign(self, client: AsyncClient, alice: dict):
        response = await _vote(client, str(uuid.uuid4()), 0, alice["headers"])
        assert response.status_code == 404


class TestComments:
    @pytest.mark.asyncio
    async def test_comment_shows_in_detail(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        response = await client.post(
            f"/api/signs/{sign['id']}/comments", json={"text": " Som Tam for sure "}, headers=alice["headers"]
        )
        assert response.status_code == 201
        assert response.json()["username"] == "alice"
        assert response.json()["text"] == "Som Tam for sure"

        detail = (await client.get(f"/api/signs/{sign['id']}")).json()
        assert [c["text"] for c in detail["comments"]] == ["Som Tam for sure"]
        assert detail["myVote"] is None

    @pytest.mark.asyncio
    async def test_empty_comment_rejected(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        response = await client.post(f"/api/signs/{sign['id']}/comments", json={"text": ""}, headers=alice["headers"])
        assert response.status_code == 400


class TestOptions:
    @pytest.mark.asyncio
    async def test_add_option_to_poll(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        response = await client.post(
            f"/api/signs/{sign['id']}/options", json={"text": "Mango Sticky Rice"}, headers=alice["headers"]
        )
        assert response.status_code == 201
        options = response.json()["options"]
        assert options[-1] == {"index": 3, "text": "Mango Sticky Rice", "votes": 0}

    @pytest.mark.asyncio
    async def test_duplicate_option_is_409(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"])
        response = await client.post(
            f"/api/signs/{sign['id']}/options", json={"text": "som  tam"}, headers=alice["headers"]
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_option_on_vote_sign_is_400(self, client: AsyncClient, alice: dict):
        sign = await create_sign(client, alice["headers"], type="vote", title="Open late?", options=None)
        response = await client.post(
            f"/api/signs/{sign['id']}/options", json={"text": "Maybe"}, headers=alice["headers"]
        )
        assert response.status_code == 400


class TestExpiry:
    @pytest.mark.asyncio
    async def test_expired_signs_hidden_then_pruned(
        self, client: AsyncClient, db_session: AsyncSession, alice: dict
    ):
        user = await get_user_by_username(db_session, "alice")
        old = await create_sign_record(
            db_session,
            user.id,
            lat=1.0,
            lng=2.0,
            sign_type="poll",
            title="Yesterday's poll",
            options=["A", "B"],
            now=datetime.now(timezone.utc) - timedelta(hours=25),
        )
        old_id = str(old.id)
        await db_session.commit()

        assert (await client.get("/api/signs")).json() == []
        assert (await client.get(f"/api/signs/{old_id}")).status_code == 404

        fresh = await create_sign(client, alice["headers"])

        deleted = await SignPruner(interval_seconds=60).prune_once()
        assert deleted == 1

        db_session.expire_all()
        remaining = (await db_session.execute(select(Sign.id))).scalars().all()
        assert [str(r) for r in remaining] == [fresh["id"]]
        option_count = (await db_session.execute(select(func.count()).select_from(SignOption))).scalar_one()
        assert option_count == 3
