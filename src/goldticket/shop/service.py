"""Shop catalog and purchases."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.db.models import GameProfile, InventoryItem, ShopItem
from goldticket.game.service import UnknownItemError, ensure_game_profile

logger = structlog.get_logger()


class AlreadyOwnedError(ValueError):
    """The item is already in the user's inventory."""


class InsufficientCoinsError(ValueError):
    """The user cannot afford the item."""


async def list_items(db: AsyncSession) -> list[ShopItem]:
    """Active catalog in display order."""
    result = await db.execute(
        select(ShopItem).where(ShopItem.is_active.is_(True)).order_by(ShopItem.sort_order, ShopItem.id)
    )
    return list(result.scalars().all())


async def _owns(db: AsyncSession, user_id: int, item_id: str) -> bool:
    result = await db.execute(
        select(InventoryItem.id).where(InventoryItem.user_id == user_id, InventoryItem.item_id == item_id)
    )
    return result.first() is not None


async def purchase_item(db: AsyncSession, user_id: int, item_id: str) -> tuple[ShopItem, int]:
    """
    Buy an item: debit its price and add it to the inventory.

    The debit is a conditional ``UPDATE`` (``coins >= price``) so concurrent
    purchases can never drive the balance negative.

    Returns:
        Tuple of (item, remaining coin balance).

    Raises:
        UnknownItemError: If the item does not exist or is inactive.
        AlreadyOwnedError: If the user already owns it.
        InsufficientCoinsError: If the balance is too low.
    """
    item = await db.get(ShopItem, item_id)
    if item is None or not item.is_active:
        msg = f"Item not found: {item_id}"
        raise UnknownItemError(msg)

    await ensure_game_profile(db, user_id)
    if await _owns(db, user_id, item_id):
        msg = "Item already owned"
        raise AlreadyOwnedError(msg)

    result = await db.execute(
        update(GameProfile)
        .where(GameProfile.user_id == user_id, GameProfile.coins >= item.price)
        .values(coins=GameProfile.coins - item.price, updated_at=datetime.now(timezone.utc))
        .returning(GameProfile.coins)
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        msg = "Not enough coins"
        raise InsufficientCoinsError(msg)

    db.add(InventoryItem(user_id=user_id, item_id=item_id, acquired_at=datetime.now(timezone.utc)))
    try:
        await db.flush()
    except IntegrityError as e:
        # A concurrent purchase of the same item won; the caller rolls back the debit
        msg = "Item already owned"
        raise AlreadyOwnedError(msg) from e

    logger.info("item_purchased", user_id=user_id, item_id=item_id, price=item.price, balance=balance)
    return item, balance
