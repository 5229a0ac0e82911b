"""Request helpers shared by the API tests."""

from __future__ import annotations

from httpx import AsyncClient


async def register_user(
    client: AsyncClient,
    username: str = "alice",
    password: str = "pw123",
    email: str | None = None,
) -> dict:
    """Register and log in. Returns credentials plus token and auth headers."""
    email = email or f"{username}@example.com"
    response = await client.post("/api/auth/register", json={
        "username": username,
        "email": email,
        "password": password,
    })
    assert response.status_code == 201, response.text
    login = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert login.status_code == 200, login.text
    token = login.json()["token"]
    return {
        "username": username,
        "email": email,
        "password": password,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


async def create_treasure(
    client: AsyncClient,
    total_boxes: int | None = 2,
    headers: dict | None = None,
    **overrides,
) -> dict:
    """POST a coupon and return the response body."""
    body = {
        "lat": 13.7563,
        "lng": 100.5018,
        "placementDate": "2026-10-19T10:00:00Z",
        "name": "Noodle House",
        "ig": "@noodlehouse",
        "face": "noodlehouse.fb",
        "mission": "Take a selfie with the chef",
        "discount": "10%",
        "discountBaht": None,
    }
    if total_boxes is not None:
        body["totalBoxes"] = total_boxes
    body.update(overrides)
    response = await client.post("/api/treasures", json=body, headers=headers or {})
    assert response.status_code == 201, response.text
    return response.json()


async def create_sign(client: AsyncClient, headers: dict, **overrides) -> dict:
    """POST a sign (a poll with three options by default) and return the response body."""
    body = {
        "lat": 13.75,
        "lng": 100.5,
        "type": "poll",
        "title": "Best street food?",
        "options": ["Pad Thai", "Som Tam", "Khao Man Gai"],
    }
    body.update(overrides)
    response = await client.post("/api/signs", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()
