"""Shop endpoints: catalog and purchases."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.dependencies import get_current_user
from goldticket.database import get_session
from goldticket.db.models import User
from goldticket.game.service import UnknownItemError
from goldticket.shop.schemas import PurchaseRequest, PurchaseResponse, ShopItemResponse
from goldticket.shop.service import (
    AlreadyOwnedError,
    InsufficientCoinsError,
    list_items,
    purchase_item,
)

router = APIRouter(prefix="/api/shop", tags=["Shop"])


@router.get("/items", response_model=list[ShopItemResponse])
async def shop_items(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[ShopItemResponse]:
    """The active catalog."""
    return [ShopItemResponse.model_validate(i) for i in await list_items(db)]


@router.post("/purchase", response_model=PurchaseResponse)
async def purchase(
    body: PurchaseRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PurchaseResponse:
    try:
        item, balance = await purchase_item(db, user.id, body.item_id)
    except UnknownItemError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except AlreadyOwnedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except InsufficientCoinsError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    response = PurchaseResponse(item=ShopItemResponse.model_validate(item), coins=balance)
    await db.commit()
    return response
