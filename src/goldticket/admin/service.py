"""Administrative queries and the full data wipe."""

from __future__ import annotations

import math

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.db.models import (
    Coupon,
    GameProfile,
    GlobalStats,
    InventoryItem,
    ReferrerStat,
    Sign,
    SignComment,
    SignOption,
    SignVote,
    Store,
    User,
    UserReport,
    Visitor,
)

logger = structlog.get_logger()

# Children before parents. The shop catalog is reference data and survives a wipe.
_WIPE_ORDER: list[tuple[str, type]] = [
    ("signComments", SignComment),
    ("signVotes", SignVote),
    ("signOptions", SignOption),
    ("signs", Sign),
    ("inventory", InventoryItem),
    ("gameProfiles", GameProfile),
    ("reports", UserReport),
    ("users", User),
    ("treasures", Coupon),
    ("stores", Store),
    ("stats", GlobalStats),
    ("visitors", Visitor),
    ("referrers", ReferrerStat),
]


async def wipe_all_data(db: AsyncSession) -> dict[str, int]:
    """Delete every row of every data table. Returns deleted counts per table."""
    results: dict[str, int] = {}
    for label, model in _WIPE_ORDER:
        result = await db.execute(delete(model).execution_options(synchronize_session=False))
        results[label] = result.rowcount or 0
    logger.warning("all_data_wiped", **results)
    return results


async def list_visitors(db: AsyncSession, page: int, limit: int) -> tuple[list[Visitor], int, int]:
    """One page of visitors, most recent visit first.

    Returns:
        (visitors, total_pages, total_visitors)
    """
    total = (await db.execute(select(func.count()).select_from(Visitor))).scalar_one()
    result = await db.execute(
        select(Visitor)
        .order_by(Visitor.last_visit.desc(), Visitor.ip_address)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), math.ceil(total / limit), total


async def list_referrers(db: AsyncSession) -> list[ReferrerStat]:
    result = await db.execute(select(ReferrerStat).order_by(ReferrerStat.count.desc(), ReferrerStat.domain))
    return list(result.scalars().all())


async def list_users(db: AsyncSession) -> list[tuple[User, UserReport | None, GameProfile | None]]:
    """Users with their report and game profile, newest account first."""
    result = await db.execute(
        select(User, UserReport, GameProfile)
        .outerjoin(UserReport, UserReport.user_id == User.id)
        .outerjoin(GameProfile, GameProfile.user_id == User.id)
        .order_by(User.created_at.desc(), User.id.desc())
    )
    return [(u, r, g) for u, r, g in result.all()]
