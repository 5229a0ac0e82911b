"""Anonymous visitor tracking keyed by client address."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from user_agents import parse as parse_user_agent

from goldticket.config import get_settings
from goldticket.db.models import Visitor
from goldticket.db.upsert import upsert_insert
from goldticket.stats.ledger import StatEvent


def client_ip(request: Request) -> str | None:
    """Caller address, honouring the first X-Forwarded-For hop behind a proxy."""
    if get_settings().trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else None


def describe_device(ua_string: str | None) -> dict[str, Any] | None:
    """Browser / OS / device breakdown of a user-agent string."""
    if not ua_string:
        return None
    ua = parse_user_agent(ua_string)
    if ua.is_mobile:
        device_type = "mobile"
    elif ua.is_tablet:
        device_type = "tablet"
    elif ua.is_pc:
        device_type = "desktop"
    else:
        device_type = None
    return {
        "browser": {"name": ua.browser.family, "version": ua.browser.version_string or None},
        "os": {"name": ua.os.family, "version": ua.os.version_string or None},
        "device": {"vendor": ua.device.brand, "model": ua.device.model, "type": device_type},
    }


async def track_visitor(
    db: AsyncSession,
    ip_address: str,
    user_agent: str | None,
    kind: StatEvent | None = None,
    now: datetime | None = None,
) -> None:
    """Upsert the visitor row: fingerprint, visit count, last visit, and ``kind``'s counter."""
    now = now or datetime.now(timezone.utc)
    device_info = describe_device(user_agent)
    values: dict[str, Any] = {
        "user_agent": user_agent,
        "device_info": device_info,
        "last_visit": now,
    }
    increments = {"visit_count": 1}
    if kind is not None and kind.visitor_counter is not None:
        increments[kind.visitor_counter] = 1

    stmt = upsert_insert(db, Visitor).values(
        ip_address=ip_address, first_visit=now, **values, **increments
    )
    set_: dict[str, Any] = dict(values)
    set_.update({name: getattr(Visitor, name) + 1 for name in increments})
    await db.execute(stmt.on_conflict_do_update(index_elements=["ip_address"], set_=set_))


async def count_visitor_app_open(db: AsyncSession, ip_address: str) -> None:
    """Bump the visitor's app-open counter, creating the row if needed."""
    now = datetime.now(timezone.utc)
    stmt = upsert_insert(db, Visitor).values(
        ip_address=ip_address, app_open_count=1, first_visit=now, last_visit=now
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["ip_address"],
        set_={"app_open_count": Visitor.app_open_count + 1},
    )
    await db.execute(stmt)


async def add_visitor_time(db: AsyncSession, ip_address: str, seconds: int) -> bool:
    """Add time on page to a known visitor. Returns False when the address was never seen."""
    result = await db.execute(
        update(Visitor)
        .where(Visitor.ip_address == ip_address)
        .values(total_time_on_page_seconds=Visitor.total_time_on_page_seconds + seconds)
    )
    return result.rowcount > 0
