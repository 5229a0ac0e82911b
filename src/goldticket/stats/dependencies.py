"""Request instrumentation as a FastAPI dependency.

``instrument(kind)`` runs in front of a handler: it resolves the optional
caller, tracks the visitor, and records ``kind`` in the global ledger. Its
writes are committed on their own so a failing handler still counts the
request, and a failing counter never fails the handler.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import structlog
from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.dependencies import get_optional_user
from goldticket.database import get_session
from goldticket.db.models import User
from goldticket.stats.ledger import StatEvent, record_event
from goldticket.stats.reports import bump_user_report
from goldticket.stats.visitors import client_ip, track_visitor

logger = structlog.get_logger()


def instrument(kind: StatEvent) -> Callable[..., Awaitable[User | None]]:
    """Build a dependency that counts ``kind`` and yields the optional caller."""

    async def _instrumented(
        request: Request,
        user: User | None = Depends(get_optional_user),
        db: AsyncSession = Depends(get_session),
    ) -> User | None:
        now = datetime.now(timezone.utc)
        user_id = user.id if user is not None else None
        try:
            ip = client_ip(request)
            if ip:
                await track_visitor(db, ip, request.headers.get("user-agent"), kind, now=now)
            await record_event(db, kind, now=now)
            if kind is StatEvent.APP_OPEN and user_id is not None:
                await bump_user_report(
                    db, user_id, increments={"app_open_count": 1}, stamps={"last_app_open": now}
                )
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("stat_record_failed", kind=kind.name, path=request.url.path)
            if user is not None:
                # Rollback expired the instance; reload it for the handler
                await db.refresh(user)
        return user

    return _instrumented
