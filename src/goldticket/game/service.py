"""Game profile economy: XP/coin rewards, time-to-coin settlement, daily reward, avatar."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.config import get_settings
from goldticket.db.models import GameProfile, InventoryItem, ShopItem
from goldticket.db.upsert import upsert_insert
from goldticket.game.levels import level_for

logger = structlog.get_logger()

AVATAR_SLOTS = ("skin", "shirt", "hair")
DEFAULT_AVATAR = {"skin": "skin_default", "shirt": "shirt_default", "hair": "hair_default"}


class DailyRewardCooldownError(Exception):
    """The daily reward was already claimed inside the cooldown window."""

    def __init__(self, next_available_at: datetime) -> None:
        super().__init__("Daily reward already claimed")
        self.next_available_at = next_available_at


class AvatarSelectionError(ValueError):
    """An avatar selection references an item of the wrong slot or one the user does not own."""


class UnknownItemError(LookupError):
    """The referenced shop item does not exist."""


@dataclass(frozen=True)
class TimeSettlement:
    coins_earned: int
    coins: int
    pending_seconds: int


# ---------------------------------------------------------------------------
# Profile lifecycle
# ---------------------------------------------------------------------------


async def ensure_game_profile(db: AsyncSession, user_id: int) -> GameProfile:
    """Get or create the game profile for a user (safe to call from any entry point)."""
    result = await db.execute(select(GameProfile).where(GameProfile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        return profile

    now = datetime.now(timezone.utc)
    stmt = upsert_insert(db, GameProfile).values(
        user_id=user_id,
        avatar=dict(DEFAULT_AVATAR),
        updated_at=now,
    )
    await db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))
    result = await db.execute(select(GameProfile).where(GameProfile.user_id == user_id))
    profile = result.scalar_one()
    logger.info("game_profile_created", user_id=user_id)
    return profile


async def lock_game_profile(db: AsyncSession, user_id: int) -> GameProfile:
    """Ensure the profile exists, then re-read it under a row lock for read-modify-write."""
    await ensure_game_profile(db, user_id)
    result = await db.execute(
        select(GameProfile)
        .where(GameProfile.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Rewards
# ---------------------------------------------------------------------------


async def grant_rewards(db: AsyncSession, user_id: int, xp: int = 0, coins: int = 0) -> GameProfile:
    """Credit XP and coins, recomputing the level from total XP."""
    profile = await lock_game_profile(db, user_id)
    old_level = profile.level
    profile.xp += xp
    profile.coins += coins
    profile.level = level_for(profile.xp).number
    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()

    if profile.level > old_level:
        logger.info("level_up", user_id=user_id, old_level=old_level, new_level=profile.level)
    return profile


async def settle_time(db: AsyncSession, user_id: int, seconds: int) -> TimeSettlement:
    """Convert logged seconds into coins at ``seconds_per_coin``, carrying the remainder."""
    settings = get_settings()
    profile = await lock_game_profile(db, user_id)

    total = profile.pending_seconds + max(seconds, 0)
    earned, profile.pending_seconds = divmod(total, settings.seconds_per_coin)
    profile.coins += earned
    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()

    return TimeSettlement(coins_earned=earned, coins=profile.coins, pending_seconds=profile.pending_seconds)


async def claim_daily_reward(db: AsyncSession, user_id: int, now: datetime | None = None) -> GameProfile:
    """Grant the daily coin reward once per cooldown window.

    Raises:
        DailyRewardCooldownError: If the last claim is still inside the window.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    cooldown = timedelta(hours=settings.daily_reward_cooldown_hours)

    profile = await lock_game_profile(db, user_id)
    last = profile.last_daily_reward_at
    if last is not None and now - last < cooldown:
        raise DailyRewardCooldownError(last + cooldown)

    profile.coins += settings.daily_reward_coins
    profile.last_daily_reward_at = now
    profile.updated_at = now
    await db.flush()
    logger.info("daily_reward_claimed", user_id=user_id, coins=settings.daily_reward_coins)
    return profile


# ---------------------------------------------------------------------------
# Avatar / inventory
# ---------------------------------------------------------------------------


async def get_inventory(db: AsyncSession, user_id: int) -> list[InventoryItem]:
    """Owned items, oldest first."""
    result = await db.execute(
        select(InventoryItem)
        .where(InventoryItem.user_id == user_id)
        .order_by(InventoryItem.acquired_at.asc(), InventoryItem.id.asc())
    )
    return list(result.scalars().all())


async def update_avatar(db: AsyncSession, user_id: int, selections: dict[str, str]) -> GameProfile:
    """Apply avatar selections. Each must be a free or owned item of the matching slot.

    Raises:
        UnknownItemError: If an item id is not in the catalog.
        AvatarSelectionError: If the slot mismatches or the item is not owned.
    """
    profile = await lock_game_profile(db, user_id)
    owned = {item.item_id for item in await get_inventory(db, user_id)}

    avatar = dict(DEFAULT_AVATAR)
    avatar.update(profile.avatar or {})
    for slot, item_id in selections.items():
        if slot not in AVATAR_SLOTS:
            msg = f"Unknown avatar slot: {slot}"
            raise AvatarSelectionError(msg)
        item = await db.get(ShopItem, item_id)
        if item is None or not item.is_active:
            msg = f"Item not found: {item_id}"
            raise UnknownItemError(msg)
        if item.slot != slot:
            msg = f"Item {item_id} cannot be worn as {slot}"
            raise AvatarSelectionError(msg)
        if item.price > 0 and item_id not in owned:
            msg = f"Item {item_id} is not owned"
            raise AvatarSelectionError(msg)
        avatar[slot] = item_id

    # Reassign so the JSON column is marked dirty
    profile.avatar = avatar
    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return profile
