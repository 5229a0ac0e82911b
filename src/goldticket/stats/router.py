"""Usage stats, visitor time logging, and referrer tracking endpoints."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.dependencies import get_current_user, get_optional_user
from goldticket.database import get_session
from goldticket.db.models import User
from goldticket.game.service import settle_time
from goldticket.schemas import MessageResponse
from goldticket.stats.ledger import get_global_stats
from goldticket.stats.referrers import count_referrer
from goldticket.stats.reports import bump_user_report, ensure_user_report
from goldticket.stats.schemas import (
    GlobalStatsResponse,
    LogTimeRequest,
    TrackReferrerRequest,
    TrackReferrerResponse,
    UserLogTimeResponse,
)
from goldticket.stats.visitors import add_visitor_time, client_ip, count_visitor_app_open

router = APIRouter(prefix="/api", tags=["Stats"])


def round_seconds(duration: float) -> int:
    """Round half up, as the web client reports fractional seconds."""
    return math.floor(duration + 0.5)


@router.get("/stats", response_model=GlobalStatsResponse)
async def read_stats(db: AsyncSession = Depends(get_session)) -> GlobalStatsResponse:
    """Global counters; all zeros before the first recorded event."""
    stats = await get_global_stats(db)
    if stats is None:
        return GlobalStatsResponse()
    return GlobalStatsResponse.model_validate(stats)


@router.post("/visitors/opened-app", response_model=MessageResponse)
async def opened_app(
    request: Request,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Count an app open for the visitor and, when signed in, the user's report."""
    ip = client_ip(request)
    if ip:
        await count_visitor_app_open(db, ip)
    if user is not None:
        await bump_user_report(
            db,
            user.id,
            increments={"app_open_count": 1},
            stamps={"last_app_open": datetime.now(timezone.utc)},
        )
    await db.commit()
    return MessageResponse(message="OK")


@router.patch("/visitors/log-time", status_code=204)
async def log_visitor_time(
    body: LogTimeRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Add time on page to the calling visitor."""
    ip = client_ip(request)
    if not ip:
        raise HTTPException(status_code=400, detail="Client address unavailable")
    await add_visitor_time(db, ip, round_seconds(body.duration_seconds))
    await db.commit()
    return Response(status_code=204)


@router.patch("/users/log-time", response_model=UserLogTimeResponse)
async def log_user_time(
    body: LogTimeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserLogTimeResponse:
    """Add time on page to the user's report and convert it into coins."""
    seconds = round_seconds(body.duration_seconds)
    await bump_user_report(db, user.id, increments={"total_time_on_page_seconds": seconds})
    settlement = await settle_time(db, user.id, seconds)
    report = await ensure_user_report(db, user.id)
    await db.refresh(report)
    await db.commit()
    return UserLogTimeResponse(
        total_time_on_page_seconds=report.total_time_on_page_seconds,
        coins_earned=settlement.coins_earned,
        coins=settlement.coins,
        pending_seconds=settlement.pending_seconds,
    )


@router.post("/stats/track-referrer", response_model=TrackReferrerResponse)
async def track_referrer(
    body: TrackReferrerRequest,
    db: AsyncSession = Depends(get_session),
) -> TrackReferrerResponse:
    """Count where a visitor came from."""
    platform, domain = await count_referrer(db, body.referrer)
    await db.commit()
    return TrackReferrerResponse(platform=platform, domain=domain)
