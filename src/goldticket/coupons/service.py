"""
Coupon registry and claim settlement.

A coupon starts with ``remaining_boxes == total_boxes``. Each successful claim
takes exactly one box through a guarded ``UPDATE ... RETURNING``, so the count
can never go negative and two claims can never share the last box. The claim
that takes the last box records the completion and deletes the row.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.config import get_settings
from goldticket.db.models import Coupon, Store
from goldticket.db.upsert import upsert_insert
from goldticket.game.service import grant_rewards
from goldticket.stats.ledger import StatEvent, record_event
from goldticket.stats.reports import bump_user_report

logger = structlog.get_logger()


class InvalidCouponIdError(ValueError):
    """The id is not a well-formed coupon identifier."""


class CouponNotFoundError(LookupError):
    """No coupon with that id, or its last box is already gone."""


@dataclass
class ClaimOutcome:
    coupon: Coupon
    exhausted: bool


def parse_coupon_id(raw_id: str) -> uuid.UUID:
    """Parse a path id, raising InvalidCouponIdError for malformed input."""
    try:
        return uuid.UUID(raw_id)
    except (ValueError, AttributeError, TypeError) as e:
        msg = "Invalid coupon id"
        raise InvalidCouponIdError(msg) from e


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


async def list_available(db: AsyncSession) -> list[Coupon]:
    """All coupons that still have boxes left, oldest first."""
    result = await db.execute(
        select(Coupon).where(Coupon.remaining_boxes > 0).order_by(Coupon.created_at.asc())
    )
    return list(result.scalars().all())


async def list_for_admin(db: AsyncSession) -> list[Coupon]:
    """Available coupons, newest placement first."""
    result = await db.execute(
        select(Coupon)
        .where(Coupon.remaining_boxes > 0)
        .order_by(Coupon.placement_date.desc(), Coupon.created_at.desc())
    )
    return list(result.scalars().all())


async def get_coupon(db: AsyncSession, raw_id: str) -> Coupon:
    """
    Fetch one coupon.

    Raises:
        InvalidCouponIdError: If the id is malformed.
        CouponNotFoundError: If no such coupon exists.
    """
    coupon_id = parse_coupon_id(raw_id)
    coupon = await db.get(Coupon, coupon_id)
    if coupon is None:
        msg = "Coupon not found"
        raise CouponNotFoundError(msg)
    return coupon


async def _count_store_coupon(db: AsyncSession, name: str, now: datetime) -> None:
    """Upsert the per-store aggregate; new stores get the next store number."""
    stmt = upsert_insert(db, Store).values(
        name=name, coupon_count=1, first_seen_at=now, last_coupon_at=now
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["name"],
        set_={"coupon_count": Store.coupon_count + 1, "last_coupon_at": now},
    )
    await db.execute(stmt)


async def create_coupon(
    db: AsyncSession,
    fields: dict[str, Any],
    user_id: int | None = None,
) -> Coupon:
    """Persist a new coupon with all of its boxes available."""
    now = datetime.now(timezone.utc)
    total_boxes = fields.get("total_boxes") or 1
    coupon = Coupon(
        **{k: v for k, v in fields.items() if k != "total_boxes"},
        total_boxes=total_boxes,
        remaining_boxes=total_boxes,
        created_at=now,
    )
    db.add(coupon)
    await db.flush()

    await _count_store_coupon(db, coupon.name, now)
    if user_id is not None:
        await bump_user_report(db, user_id, increments={"treasures_placed": 1})

    logger.info("coupon_created", coupon_id=str(coupon.id), name=coupon.name, total_boxes=total_boxes)
    return coupon


# ---------------------------------------------------------------------------
# Claim settlement
# ---------------------------------------------------------------------------


async def claim_coupon(db: AsyncSession, raw_id: str, user_id: int | None = None) -> ClaimOutcome:
    """
    Take one box from a coupon and settle its side effects.

    Steps, all inside the caller's transaction:
    1. reject malformed ids before touching the database
    2. decrement only while boxes remain, returning the new row
    3. credit the signed-in claimer (report counter, XP, coins)
    4. when the last box went, count the completion and delete the coupon

    Raises:
        InvalidCouponIdError: If the id is malformed.
        CouponNotFoundError: If the coupon is missing or already exhausted.
    """
    coupon_id = parse_coupon_id(raw_id)

    result = await db.execute(
        update(Coupon)
        .where(Coupon.id == coupon_id, Coupon.remaining_boxes > 0)
        .values(remaining_boxes=Coupon.remaining_boxes - 1)
        .returning(Coupon)
        .execution_options(populate_existing=True)
    )
    coupon = result.scalar_one_or_none()
    if coupon is None:
        msg = "Coupon not found or already exhausted"
        raise CouponNotFoundError(msg)

    if user_id is not None:
        settings = get_settings()
        await bump_user_report(db, user_id, increments={"treasures_claimed": 1})
        await grant_rewards(db, user_id, xp=settings.claim_reward_xp, coins=settings.claim_reward_coins)

    exhausted = coupon.remaining_boxes <= 0
    if exhausted:
        await record_event(db, StatEvent.COUPON_COMPLETED)
        await db.execute(
            delete(Coupon).where(Coupon.id == coupon_id).execution_options(synchronize_session=False)
        )
        db.expunge(coupon)
        logger.info("coupon_exhausted", coupon_id=str(coupon_id))

    logger.info(
        "coupon_claimed",
        coupon_id=str(coupon_id),
        remaining_boxes=coupon.remaining_boxes,
        user_id=user_id,
    )
    return ClaimOutcome(coupon=coupon, exhausted=exhausted)
