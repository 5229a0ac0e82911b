"""Shop request/response schemas."""

from __future__ import annotations

from pydantic import Field

from goldticket.schemas import CamelModel


class ShopItemResponse(CamelModel):
    id: str
    name: str
    slot: str
    price: int


class PurchaseRequest(CamelModel):
    item_id: str = Field(..., min_length=1, max_length=64)


class PurchaseResponse(CamelModel):
    success: bool = True
    item: ShopItemResponse
    coins: int
