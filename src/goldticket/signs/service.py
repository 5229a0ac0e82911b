"""
Signs: time-limited map posts (announcements, yes/no votes, polls).

Expired signs are treated as gone by every read and are deleted in bulk by
the background pruner. Each user holds at most one vote per sign, enforced
by the unique ``(sign_id, user_id)`` row in ``sign_votes``.
"""

from __future__ import annotations

import enum
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from goldticket.config import get_settings
from goldticket.db.models import Sign, SignComment, SignOption, SignVote, User
from goldticket.game.service import lock_game_profile

logger = structlog.get_logger()

SIGN_ANNOUNCEMENT = "announcement"
SIGN_VOTE = "vote"
SIGN_POLL = "poll"
VOTABLE_TYPES = frozenset({SIGN_VOTE, SIGN_POLL})
DEFAULT_VOTE_OPTIONS = ("Yes", "No")
MAX_OPTIONS = 10


class SignNotFoundError(LookupError):
    """No such sign, or it has expired."""


class InvalidSignError(ValueError):
    """The sign payload or operation does not fit the sign's type."""


class InvalidOptionError(ValueError):
    """Option index out of range."""


class DuplicateOptionError(ValueError):
    """A poll already has an option with that text."""


class SignCooldownError(Exception):
    """The user placed a sign too recently."""

    def __init__(self, retry_at: datetime) -> None:
        super().__init__("You can place another sign later")
        self.retry_at = retry_at


class VoteAction(str, enum.Enum):
    ADDED = "added"
    MOVED = "moved"
    REMOVED = "removed"


def _normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def _clean_options(options: list[str] | None, sign_type: str) -> list[str]:
    cleaned = [" ".join(o.split()) for o in options or [] if o and o.strip()]
    if sign_type == SIGN_VOTE and not cleaned:
        return list(DEFAULT_VOTE_OPTIONS)
    if len(cleaned) < 2:
        msg = "A poll needs at least two options"
        raise InvalidSignError(msg)
    if len(cleaned) > MAX_OPTIONS:
        msg = f"A poll can have at most {MAX_OPTIONS} options"
        raise InvalidSignError(msg)
    if len({_normalize(o) for o in cleaned}) != len(cleaned):
        msg = "Poll options must be unique"
        raise InvalidSignError(msg)
    return cleaned


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def create_sign(
    db: AsyncSession,
    owner_id: int,
    *,
    lat: float,
    lng: float,
    sign_type: str,
    message: str | None = None,
    title: str | None = None,
    description: str | None = None,
    options: list[str] | None = None,
    now: datetime | None = None,
) -> Sign:
    """
    Place a sign, subject to the per-user cooldown.

    Raises:
        InvalidSignError: If the payload does not fit ``sign_type``.
        SignCooldownError: If the user's previous sign is too recent.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)

    if sign_type == SIGN_ANNOUNCEMENT:
        if not message or not message.strip():
            msg = "An announcement needs a message"
            raise InvalidSignError(msg)
        option_texts: list[str] = []
    elif sign_type in VOTABLE_TYPES:
        if not title or not title.strip():
            msg = "A vote or poll needs a title"
            raise InvalidSignError(msg)
        option_texts = _clean_options(options, sign_type)
    else:
        msg = f"Unknown sign type: {sign_type}"
        raise InvalidSignError(msg)

    profile = await lock_game_profile(db, owner_id)
    cooldown = timedelta(minutes=settings.sign_cooldown_minutes)
    last = profile.last_sign_placed_at
    if last is not None and now - last < cooldown:
        raise SignCooldownError(last + cooldown)

    sign = Sign(
        owner_id=owner_id,
        lat=lat,
        lng=lng,
        type=sign_type,
        message=message.strip() if message else None,
        title=title.strip() if title else None,
        description=description.strip() if description else None,
        created_at=now,
        expires_at=now + timedelta(hours=settings.sign_ttl_hours),
        options=[SignOption(position=i, text=t) for i, t in enumerate(option_texts)],
        comments=[],
    )
    db.add(sign)
    profile.last_sign_placed_at = now
    await db.flush()
    logger.info("sign_created", sign_id=str(sign.id), owner_id=owner_id, type=sign_type)
    return sign


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def list_active_signs(db: AsyncSession, now: datetime | None = None) -> list[Sign]:
    """Unexpired signs with their options, newest first."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(Sign)
        .where(Sign.expires_at > now)
        .options(selectinload(Sign.options))
        .order_by(Sign.created_at.desc())
    )
    return list(result.scalars().all())


async def get_active_sign(
    db: AsyncSession,
    sign_id: uuid.UUID,
    *,
    with_comments: bool = False,
    now: datetime | None = None,
) -> Sign:
    """
    Fetch one unexpired sign with its options (and comments when asked).

    Raises:
        SignNotFoundError: If the sign is missing or expired.
    """
    now = now or datetime.now(timezone.utc)
    loaders: list[Any] = [selectinload(Sign.options)]
    if with_comments:
        loaders.append(selectinload(Sign.comments))
    result = await db.execute(
        select(Sign).where(Sign.id == sign_id, Sign.expires_at > now).options(*loaders)
    )
    sign = result.scalar_one_or_none()
    if sign is None:
        msg = "Sign not found"
        raise SignNotFoundError(msg)
    return sign


async def vote_counts(db: AsyncSession, sign_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict[int, int]]:
    """``{sign_id: {option_position: votes}}`` for the given signs."""
    if not sign_ids:
        return {}
    result = await db.execute(
        select(SignVote.sign_id, SignVote.option_position, func.count())
        .where(SignVote.sign_id.in_(sign_ids))
        .group_by(SignVote.sign_id, SignVote.option_position)
    )
    counts: dict[uuid.UUID, dict[int, int]] = defaultdict(dict)
    for sign_id, position, count in result.all():
        counts[sign_id][position] = count
    return counts


async def get_user_vote(db: AsyncSession, sign_id: uuid.UUID, user_id: int) -> int | None:
    result = await db.execute(
        select(SignVote.option_position).where(SignVote.sign_id == sign_id, SignVote.user_id == user_id)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def add_comment(db: AsyncSession, sign_id: uuid.UUID, user: User, text: str) -> SignComment:
    """
    Append a comment to an unexpired sign.

    Raises:
        SignNotFoundError: If the sign is missing or expired.
    """
    await get_active_sign(db, sign_id)
    comment = SignComment(
        sign_id=sign_id,
        user_id=user.id,
        username=user.username,
        text=text.strip(),
        created_at=datetime.now(timezone.utc),
    )
    db.add(comment)
    await db.flush()
    return comment


async def cast_vote(db: AsyncSession, sign_id: uuid.UUID, user_id: int, option_index: int) -> VoteAction:
    """
    Toggle a single-choice vote.

    Voting for the option you already hold removes your vote; voting for a
    different option moves it; otherwise the vote is added.

    Raises:
        SignNotFoundError: If the sign is missing, expired, or not votable.
        InvalidOptionError: If ``option_index`` is out of range.
    """
    sign = await get_active_sign(db, sign_id)
    if sign.type not in VOTABLE_TYPES:
        msg = "Sign not found"
        raise SignNotFoundError(msg)
    if not 0 <= option_index < len(sign.options):
        msg = f"Option index out of range: {option_index}"
        raise InvalidOptionError(msg)

    result = await db.execute(
        select(SignVote)
        .where(SignVote.sign_id == sign_id, SignVote.user_id == user_id)
        .with_for_update()
    )
    existing = result.scalar_one_or_none()

    if existing is None:
        db.add(SignVote(
            sign_id=sign_id,
            user_id=user_id,
            option_position=option_index,
            voted_at=datetime.now(timezone.utc),
        ))
        action = VoteAction.ADDED
    elif existing.option_position == option_index:
        await db.delete(existing)
        action = VoteAction.REMOVED
    else:
        existing.option_position = option_index
        existing.voted_at = datetime.now(timezone.utc)
        action = VoteAction.MOVED

    await db.flush()
    logger.info("sign_vote", sign_id=str(sign_id), user_id=user_id, option=option_index, action=action.value)
    return action


async def add_option(db: AsyncSession, sign_id: uuid.UUID, text: str) -> SignOption:
    """
    Append an option to a poll.

    Raises:
        SignNotFoundError: If the sign is missing or expired.
        InvalidSignError: If the sign is not a poll or is already full.
        DuplicateOptionError: If an option with the same text exists.
    """
    sign = await get_active_sign(db, sign_id)
    if sign.type != SIGN_POLL:
        msg = "Options can only be added to polls"
        raise InvalidSignError(msg)
    if len(sign.options) >= MAX_OPTIONS:
        msg = f"A poll can have at most {MAX_OPTIONS} options"
        raise InvalidSignError(msg)

    cleaned = " ".join(text.split())
    if any(_normalize(o.text) == _normalize(cleaned) for o in sign.options):
        msg = "Option already exists"
        raise DuplicateOptionError(msg)

    position = max((o.position for o in sign.options), default=-1) + 1
    option = SignOption(sign_id=sign_id, position=position, text=cleaned)
    sign.options.append(option)
    await db.flush()
    return option


async def prune_expired_signs(db: AsyncSession, now: datetime | None = None) -> int:
    """Delete expired signs; options, votes and comments go with them."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(delete(Sign).where(Sign.expires_at <= now))
    return result.rowcount or 0
