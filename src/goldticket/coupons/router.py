"""Coupon (treasure) endpoints: /api/treasures."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.coupons.schemas import CouponCreateRequest, CouponResponse
from goldticket.coupons.service import (
    CouponNotFoundError,
    InvalidCouponIdError,
    claim_coupon,
    create_coupon,
    list_available,
)
from goldticket.database import get_session
from goldticket.db.models import User
from goldticket.stats.dependencies import instrument
from goldticket.stats.ledger import StatEvent

router = APIRouter(prefix="/api/treasures", tags=["Treasures"])


@router.get("", response_model=list[CouponResponse])
async def list_treasures(
    _caller: User | None = Depends(instrument(StatEvent.APP_OPEN)),
    db: AsyncSession = Depends(get_session),
) -> list[CouponResponse]:
    """Every coupon that still has boxes. Counts as an app open."""
    coupons = await list_available(db)
    return [CouponResponse.model_validate(c) for c in coupons]


@router.post("", response_model=CouponResponse, status_code=201)
async def place_treasure(
    body: CouponCreateRequest,
    caller: User | None = Depends(instrument(StatEvent.COUPON_CREATED)),
    db: AsyncSession = Depends(get_session),
) -> CouponResponse:
    """Place a coupon on the map."""
    coupon = await create_coupon(
        db,
        body.model_dump(),
        user_id=caller.id if caller is not None else None,
    )
    response = CouponResponse.model_validate(coupon)
    await db.commit()
    return response


@router.patch("/{coupon_id}", response_model=CouponResponse)
async def claim_treasure(
    coupon_id: str,
    caller: User | None = Depends(instrument(StatEvent.COUPON_OPENED)),
    db: AsyncSession = Depends(get_session),
) -> CouponResponse:
    """Claim one box. Returns the coupon as it stood after the claim."""
    try:
        outcome = await claim_coupon(db, coupon_id, user_id=caller.id if caller is not None else None)
    except InvalidCouponIdError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CouponNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    response = CouponResponse.model_validate(outcome.coupon)
    await db.commit()
    return response
