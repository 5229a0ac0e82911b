"""Admin endpoints: data wipe (password) and listings (admin role)."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.admin.schemas import (
    AdminUserResponse,
    Pagination,
    ReferrerResponse,
    ResetDataRequest,
    ResetDataResponse,
    VisitorPage,
    VisitorResponse,
)
from goldticket.admin.service import list_referrers, list_users, list_visitors, wipe_all_data
from goldticket.auth.dependencies import require_admin
from goldticket.config import get_settings
from goldticket.coupons.schemas import CouponResponse, CouponSummary
from goldticket.coupons.service import (
    CouponNotFoundError,
    InvalidCouponIdError,
    get_coupon,
    list_for_admin,
)
from goldticket.database import get_session

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.delete("/reset-data", response_model=ResetDataResponse)
async def reset_data(
    body: ResetDataRequest,
    db: AsyncSession = Depends(get_session),
) -> ResetDataResponse:
    """Wipe all data. Guarded by the reset password, not by a token."""
    expected = get_settings().admin_reset_password
    if not expected or not hmac.compare_digest(body.password.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Incorrect password")
    results = await wipe_all_data(db)
    await db.commit()
    return ResetDataResponse(message="All data has been reset", results=results)


@router.get("/treasures", response_model=list[CouponSummary], dependencies=[Depends(require_admin)])
async def admin_treasures(db: AsyncSession = Depends(get_session)) -> list[CouponSummary]:
    return [CouponSummary.model_validate(c) for c in await list_for_admin(db)]


@router.get("/treasures/{coupon_id}", response_model=CouponResponse, dependencies=[Depends(require_admin)])
async def admin_treasure_detail(
    coupon_id: str,
    db: AsyncSession = Depends(get_session),
) -> CouponResponse:
    try:
        coupon = await get_coupon(db, coupon_id)
    except InvalidCouponIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CouponNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return CouponResponse.model_validate(coupon)


@router.get("/visitors", response_model=VisitorPage, dependencies=[Depends(require_admin)])
async def admin_visitors(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> VisitorPage:
    visitors, total_pages, total = await list_visitors(db, page, limit)
    return VisitorPage(
        data=[VisitorResponse.model_validate(v) for v in visitors],
        pagination=Pagination(current_page=page, total_pages=total_pages, total_visitors=total),
    )


@router.get("/referrers", response_model=list[ReferrerResponse], dependencies=[Depends(require_admin)])
async def admin_referrers(db: AsyncSession = Depends(get_session)) -> list[ReferrerResponse]:
    return [ReferrerResponse.model_validate(r) for r in await list_referrers(db)]


@router.get("/users", response_model=list[AdminUserResponse], dependencies=[Depends(require_admin)])
async def admin_users(db: AsyncSession = Depends(get_session)) -> list[AdminUserResponse]:
    rows = await list_users(db)
    users = []
    for user, report, profile in rows:
        entry = AdminUserResponse.model_validate(user)
        if report is not None:
            entry.total_time_on_page_seconds = report.total_time_on_page_seconds
            entry.treasures_placed = report.treasures_placed
            entry.treasures_claimed = report.treasures_claimed
            entry.app_open_count = report.app_open_count
            entry.last_login = report.last_login
        if profile is not None:
            entry.coins = profile.coins
            entry.level = profile.level
        users.append(entry)
    return users
