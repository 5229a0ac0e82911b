"""Coupon (treasure) request/response schemas."""

from __future__ import annotations

import uuid

from pydantic import Field

from goldticket.schemas import CamelModel


class CouponCreateRequest(CamelModel):
    """Placement of a new coupon. ``remainingBoxes`` is always derived from ``totalBoxes``."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    placement_date: str | None = Field(None, max_length=64)
    name: str = Field(..., min_length=1, max_length=128)
    ig: str | None = Field(None, max_length=256)
    face: str | None = Field(None, max_length=256)
    mission: str | None = Field(None, max_length=2000)
    discount: str | None = Field(None, max_length=64)
    discount_baht: str | None = Field(None, max_length=64)
    total_boxes: int = Field(1, ge=1, le=10000)


class CouponResponse(CamelModel):
    id: uuid.UUID
    lat: float
    lng: float
    placement_date: str | None = None
    name: str
    ig: str | None = None
    face: str | None = None
    mission: str | None = None
    discount: str | None = None
    discount_baht: str | None = None
    total_boxes: int
    remaining_boxes: int


class CouponSummary(CamelModel):
    """Admin listing projection."""

    id: uuid.UUID
    placement_date: str | None = None
    name: str
    total_boxes: int
    remaining_boxes: int
