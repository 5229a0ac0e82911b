"""Stats and visitor request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from goldticket.schemas import CamelModel


class GlobalStatsResponse(CamelModel):
    app_open_count: int = 0
    treasures_created_count: int = 0
    treasures_opened_count: int = 0
    treasures_completed_count: int = 0
    last_app_open: datetime | None = None
    last_treasure_created: datetime | None = None
    last_treasure_opened: datetime | None = None
    last_treasure_completed: datetime | None = None


class LogTimeRequest(CamelModel):
    """Time spent on the page since the last report."""

    duration_seconds: float = Field(..., gt=0, le=86400)


class UserLogTimeResponse(CamelModel):
    total_time_on_page_seconds: int
    coins_earned: int
    coins: int
    pending_seconds: int


class TrackReferrerRequest(CamelModel):
    referrer: str | None = Field(None, max_length=2048)


class TrackReferrerResponse(CamelModel):
    platform: str
    domain: str
