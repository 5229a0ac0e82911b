"""Global usage counters (singleton ``global-stats`` row)."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import NamedTuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.db.models import GLOBAL_STATS_ID, GlobalStats
from goldticket.db.upsert import upsert_insert

logger = structlog.get_logger()


class _EventColumns(NamedTuple):
    counter: str
    stamp: str
    visitor_counter: str | None


class StatEvent(enum.Enum):
    """Countable event kinds, each mapped to its global counter and timestamp."""

    APP_OPEN = _EventColumns("app_open_count", "last_app_open", "app_open_count")
    COUPON_CREATED = _EventColumns(
        "treasures_created_count", "last_treasure_created", "treasures_created_count"
    )
    COUPON_OPENED = _EventColumns(
        "treasures_opened_count", "last_treasure_opened", "treasures_opened_count"
    )
    COUPON_COMPLETED = _EventColumns("treasures_completed_count", "last_treasure_completed", None)

    @property
    def counter(self) -> str:
        return self.value.counter

    @property
    def stamp(self) -> str:
        return self.value.stamp

    @property
    def visitor_counter(self) -> str | None:
        return self.value.visitor_counter


async def record_event(db: AsyncSession, kind: StatEvent, now: datetime | None = None) -> None:
    """Atomically add one to ``kind``'s counter and stamp its last-occurred time.

    The row is created on first use, so callers never need to seed it.
    """
    now = now or datetime.now(timezone.utc)
    stmt = upsert_insert(db, GlobalStats).values(
        identifier=GLOBAL_STATS_ID,
        **{kind.counter: 1, kind.stamp: now},
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["identifier"],
        set_={
            kind.counter: getattr(GlobalStats, kind.counter) + 1,
            kind.stamp: now,
        },
    )
    await db.execute(stmt)
    logger.debug("stat_recorded", kind=kind.name)


async def get_global_stats(db: AsyncSession) -> GlobalStats | None:
    """Current ledger row, or None before any event was recorded."""
    result = await db.execute(select(GlobalStats).where(GlobalStats.identifier == GLOBAL_STATS_ID))
    return result.scalar_one_or_none()
