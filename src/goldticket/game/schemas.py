"""Game profile request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from goldticket.schemas import CamelModel


class Avatar(CamelModel):
    skin: str
    shirt: str
    hair: str


class InventoryEntry(CamelModel):
    item_id: str
    acquired_at: datetime


class LevelProgress(CamelModel):
    level: int
    title: str
    xp_into_level: int
    xp_for_level: int
    next_level: int
    next_title: str


class GameProfileResponse(CamelModel):
    level: int
    xp: int
    level_info: LevelProgress
    coins: int
    pending_seconds: int
    avatar: Avatar
    inventory: list[InventoryEntry]
    last_daily_reward_at: datetime | None = None
    last_sign_placed_at: datetime | None = None


class AvatarUpdateRequest(CamelModel):
    """Partial avatar change; omitted slots keep their current item."""

    skin: str | None = Field(None, max_length=64)
    shirt: str | None = Field(None, max_length=64)
    hair: str | None = Field(None, max_length=64)

    @model_validator(mode="after")
    def require_one_slot(self) -> AvatarUpdateRequest:
        if self.skin is None and self.shirt is None and self.hair is None:
            msg = "At least one of skin, shirt, hair is required"
            raise ValueError(msg)
        return self


class DailyRewardResponse(CamelModel):
    success: bool = True
    coins_awarded: int
    coins: int
    next_available_at: datetime
