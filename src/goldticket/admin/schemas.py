"""Admin request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from goldticket.schemas import CamelModel


class ResetDataRequest(CamelModel):
    password: str = Field(..., min_length=1, max_length=256)


class ResetDataResponse(CamelModel):
    message: str
    results: dict[str, int]


class VisitorResponse(CamelModel):
    ip_address: str
    user_agent: str | None = None
    device_info: dict[str, Any] | None = None
    visit_count: int
    first_visit: datetime
    last_visit: datetime
    total_time_on_page_seconds: int
    app_open_count: int
    treasures_created_count: int
    treasures_opened_count: int


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_visitors: int


class VisitorPage(CamelModel):
    data: list[VisitorResponse]
    pagination: Pagination


class ReferrerResponse(CamelModel):
    domain: str
    platform: str
    count: int


class AdminUserResponse(CamelModel):
    id: int
    username: str
    email: str
    role: str
    gender: str | None = None
    age_range: str | None = None
    referral: str | None = None
    created_at: datetime
    total_time_on_page_seconds: int = 0
    treasures_placed: int = 0
    treasures_claimed: int = 0
    app_open_count: int = 0
    last_login: datetime | None = None
    coins: int = 0
    level: int = 1
