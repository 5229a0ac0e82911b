"""ORM models for coupons, analytics counters, accounts, game economy, and signs."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from goldticket.db.base import Base, UTCDateTime

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
BigIntPK = BigInteger().with_variant(Integer, "sqlite")
JSONDoc = JSON().with_variant(JSONB, "postgresql")

GLOBAL_STATS_ID = "global-stats"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------


class Coupon(Base):
    """A location-pinned coupon ("treasure") with a finite number of boxes."""

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("total_boxes >= 1", name="ck_coupons_total_positive"),
        CheckConstraint(
            "remaining_boxes >= 0 AND remaining_boxes <= total_boxes",
            name="ck_coupons_remaining_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    placement_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    ig: Mapped[str | None] = mapped_column(String(256), nullable=True)
    face: Mapped[str | None] = mapped_column(String(256), nullable=True)
    mission: Mapped[str | None] = mapped_column(Text, nullable=True)
    discount: Mapped[str | None] = mapped_column(String(64), nullable=True)
    discount_baht: Mapped[str | None] = mapped_column(String(64), nullable=True)
    total_boxes: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    remaining_boxes: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class Store(Base):
    """Denormalized per-store aggregate keyed by coupon display name."""

    __tablename__ = "stores"

    store_number: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    coupon_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    first_seen_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    last_coupon_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class GlobalStats(Base):
    """Singleton row of monotonic usage counters."""

    __tablename__ = "global_stats"

    identifier: Mapped[str] = mapped_column(String(32), primary_key=True, default=GLOBAL_STATS_ID)
    app_open_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    treasures_created_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    treasures_opened_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    treasures_completed_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    last_app_open: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_treasure_created: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_treasure_opened: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_treasure_completed: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class Visitor(Base):
    """Anonymous caller keyed by network address."""

    __tablename__ = "visitors"

    ip_address: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_info: Mapped[dict[str, Any] | None] = mapped_column(JSONDoc, nullable=True)
    visit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    first_visit: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    last_visit: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    total_time_on_page_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    app_open_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    treasures_created_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    treasures_opened_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class ReferrerStat(Base):
    """Inbound referrer counts grouped by domain."""

    __tablename__ = "referrer_stats"

    domain: Mapped[str] = mapped_column(String(255), primary_key=True)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class User(Base):
    """Registered account (auth identity)."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('normal', 'admin')", name="ck_users_role"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="normal", server_default="normal")
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    age_range: Mapped[str | None] = mapped_column(String(8), nullable=True)
    referral: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    password_reset_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


class UserReport(Base):
    """Cumulative activity counters, one row per user."""

    __tablename__ = "user_reports"

    user_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    total_time_on_page_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    treasures_placed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    treasures_claimed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    app_open_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_app_open: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)


# ---------------------------------------------------------------------------
# Game economy
# ---------------------------------------------------------------------------


class GameProfile(Base):
    """In-app economy state, one row per user."""

    __tablename__ = "game_profiles"
    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_game_profiles_coins_non_negative"),
    )

    user_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    xp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    coins: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    pending_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_daily_reward_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    last_sign_placed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    avatar: Mapped[dict[str, Any]] = mapped_column(JSONDoc, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class ShopItem(Base):
    """Catalog entry purchasable with coins."""

    __tablename__ = "shop_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    slot: Mapped[str] = mapped_column(String(16), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


class InventoryItem(Base):
    """An owned shop item. At most one row per (user, item)."""

    __tablename__ = "inventory_items"
    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_inventory_items_user_item"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id: Mapped[str] = mapped_column(String(64), ForeignKey("shop_items.id", ondelete="CASCADE"), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Signs / polls
# ---------------------------------------------------------------------------


class Sign(Base):
    """Time-limited geographic post: announcement, single vote, or poll."""

    __tablename__ = "signs"
    __table_args__ = (
        CheckConstraint("type IN ('announcement', 'vote', 'poll')", name="ck_signs_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    options: Mapped[list[SignOption]] = relationship(
        "SignOption",
        order_by="SignOption.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments: Mapped[list[SignComment]] = relationship(
        "SignComment",
        order_by="SignComment.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SignOption(Base):
    """One choice of a vote/poll sign."""

    __tablename__ = "sign_options"
    __table_args__ = (
        UniqueConstraint("sign_id", "position", name="uq_sign_options_sign_position"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sign_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("signs.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(String(120), nullable=False)


class SignVote(Base):
    """A user's single current choice on a sign."""

    __tablename__ = "sign_votes"
    __table_args__ = (
        UniqueConstraint("sign_id", "user_id", name="uq_sign_votes_sign_user"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sign_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("signs.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    option_position: Mapped[int] = mapped_column(Integer, nullable=False)
    voted_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


class SignComment(Base):
    """Comment left on a sign."""

    __tablename__ = "sign_comments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sign_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("signs.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int | None] = mapped_column(BigIntPK, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
