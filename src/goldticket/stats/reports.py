"""Per-user activity report counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.db.models import UserReport
from goldticket.db.upsert import upsert_insert

_COUNTERS = frozenset({
    "total_time_on_page_seconds",
    "treasures_placed",
    "treasures_claimed",
    "app_open_count",
})
_STAMPS = frozenset({"last_login", "last_app_open"})


async def ensure_user_report(db: AsyncSession, user_id: int) -> UserReport:
    """Idempotently create the report row for a user and return it."""
    stmt = upsert_insert(db, UserReport).values(user_id=user_id)
    await db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))
    result = await db.execute(select(UserReport).where(UserReport.user_id == user_id))
    return result.scalar_one()


async def bump_user_report(
    db: AsyncSession,
    user_id: int,
    *,
    increments: dict[str, int] | None = None,
    stamps: dict[str, datetime] | None = None,
) -> None:
    """Atomically add to counters and overwrite timestamps, creating the row if missing."""
    increments = increments or {}
    stamps = stamps or {}
    unknown = (set(increments) - _COUNTERS) | (set(stamps) - _STAMPS)
    if unknown:
        msg = f"Unknown report fields: {sorted(unknown)}"
        raise ValueError(msg)

    stmt = upsert_insert(db, UserReport).values(user_id=user_id, **increments, **stamps)
    set_: dict[str, object] = {
        name: getattr(UserReport, name) + amount for name, amount in increments.items()
    }
    set_.update(stamps)
    if not set_:
        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id"])
    else:
        stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_=set_)
    await db.execute(stmt)
