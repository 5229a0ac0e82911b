"""Game profile endpoints: profile, avatar, daily reward."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.dependencies import get_current_user
from goldticket.config import get_settings
from goldticket.database import get_session
from goldticket.db.models import GameProfile, User
from goldticket.game.levels import compute_level
from goldticket.game.schemas import (
    Avatar,
    AvatarUpdateRequest,
    DailyRewardResponse,
    GameProfileResponse,
    InventoryEntry,
    LevelProgress,
)
from goldticket.game.service import (
    DEFAULT_AVATAR,
    AvatarSelectionError,
    DailyRewardCooldownError,
    UnknownItemError,
    claim_daily_reward,
    ensure_game_profile,
    get_inventory,
    update_avatar,
)

router = APIRouter(prefix="/api/game", tags=["Game"])


async def _profile_response(db: AsyncSession, profile: GameProfile) -> GameProfileResponse:
    inventory = await get_inventory(db, profile.user_id)
    avatar = {**DEFAULT_AVATAR, **(profile.avatar or {})}
    return GameProfileResponse(
        level=profile.level,
        xp=profile.xp,
        level_info=LevelProgress(**compute_level(profile.xp)),
        coins=profile.coins,
        pending_seconds=profile.pending_seconds,
        avatar=Avatar(**avatar),
        inventory=[InventoryEntry(item_id=i.item_id, acquired_at=i.acquired_at) for i in inventory],
        last_daily_reward_at=profile.last_daily_reward_at,
        last_sign_placed_at=profile.last_sign_placed_at,
    )


@router.get("/profile", response_model=GameProfileResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GameProfileResponse:
    """The caller's game profile, created on first access."""
    profile = await ensure_game_profile(db, user.id)
    response = await _profile_response(db, profile)
    await db.commit()
    return response


@router.put("/avatar", response_model=GameProfileResponse)
async def put_avatar(
    body: AvatarUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GameProfileResponse:
    """Wear free or owned items."""
    try:
        profile = await update_avatar(db, user.id, body.model_dump(exclude_none=True))
    except UnknownItemError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except AvatarSelectionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    response = await _profile_response(db, profile)
    await db.commit()
    return response


@router.post("/daily-reward", response_model=DailyRewardResponse)
async def daily_reward(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DailyRewardResponse:
    """Claim the daily coin bonus."""
    settings = get_settings()
    try:
        profile = await claim_daily_reward(db, user.id)
    except DailyRewardCooldownError as e:
        raise HTTPException(
            status_code=429,
            detail=f"Daily reward already claimed. Next available at {e.next_available_at.isoformat()}",
        ) from e
    response = DailyRewardResponse(
        coins_awarded=settings.daily_reward_coins,
        coins=profile.coins,
        next_available_at=profile.last_daily_reward_at + timedelta(hours=settings.daily_reward_cooldown_hours),
    )
    await db.commit()
    return response
