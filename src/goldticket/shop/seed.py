"""Shop catalog seed data. The three ``*_default`` items are free and worn by new profiles."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.db.models import ShopItem
from goldticket.db.upsert import upsert_insert

logger = logging.getLogger(__name__)

SHOP_SEED_DATA: list[dict] = [
    # Skins
    {"id": "skin_default", "name": "Natural", "slot": "skin", "price": 0, "sort_order": 1},
    {"id": "skin_tan", "name": "Sun Kissed", "slot": "skin", "price": 30, "sort_order": 2},
    {"id": "skin_gold", "name": "Gilded", "slot": "skin", "price": 250, "sort_order": 3},
    # Shirts
    {"id": "shirt_default", "name": "Plain Tee", "slot": "shirt", "price": 0, "sort_order": 10},
    {"id": "shirt_hawaii", "name": "Hawaiian Shirt", "slot": "shirt", "price": 40, "sort_order": 11},
    {"id": "shirt_hoodie", "name": "Explorer Hoodie", "slot": "shirt", "price": 80, "sort_order": 12},
    {"id": "shirt_tux", "name": "Golden Tux", "slot": "shirt", "price": 300, "sort_order": 13},
    # Hair
    {"id": "hair_default", "name": "Short Crop", "slot": "hair", "price": 0, "sort_order": 20},
    {"id": "hair_long", "name": "Long Waves", "slot": "hair", "price": 25, "sort_order": 21},
    {"id": "hair_mohawk", "name": "Mohawk", "slot": "hair", "price": 60, "sort_order": 22},
    {"id": "hair_crown", "name": "Treasure Crown", "slot": "hair", "price": 500, "sort_order": 23},
]


async def seed_shop_items(db: AsyncSession) -> int:
    """Upsert the catalog. Returns number of items seeded."""
    seeded = 0
    for item_data in SHOP_SEED_DATA:
        stmt = upsert_insert(db, ShopItem).values(**item_data, is_active=True)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "name": stmt.excluded.name,
                "slot": stmt.excluded.slot,
                "price": stmt.excluded.price,
                "sort_order": stmt.excluded.sort_order,
                "is_active": stmt.excluded.is_active,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d shop items", seeded)
    return seeded
